import pytest

from ChaosTable.rules import encumbrance as enc
from ChaosTable.rules.errors import is_failure
from ChaosTable.rules.types import CreatureSize, EncumbranceState
from ChaosTable.schemas import CoinPurse, CurrencyRecord, InventoryItem


def test_capacity_formula():
    assert enc.compute_capacity(0) == 5
    assert enc.compute_capacity(3) == 20
    assert enc.compute_capacity(3, size_modifier=2, other_modifiers=1) == 23


def test_capacity_never_negative():
    assert enc.compute_capacity(0, size_modifier=-5, other_modifiers=-3) == 0


def test_capacity_rejects_negative_body():
    res = enc.compute_capacity(-1)
    assert is_failure(res)
    assert res.field == "body"


@pytest.mark.parametrize(
    "weight,state",
    [
        (0, EncumbranceState.NORMAL),
        (10, EncumbranceState.NORMAL),
        (10.0001, EncumbranceState.OVERLOADED),
        (20, EncumbranceState.OVERLOADED),
        (20.0001, EncumbranceState.IMMOBILIZED),
    ],
)
def test_classify_boundaries(weight, state):
    assert enc.classify(weight, 10) is state


def test_classify_zero_capacity():
    assert enc.classify(0, 0) is EncumbranceState.NORMAL
    assert enc.classify(1, 0) is EncumbranceState.IMMOBILIZED


def test_item_weights():
    items = [
        InventoryItem(name="Rope", weight=1.5, quantity=2),
        InventoryItem(name="Letter"),  # weightless
        InventoryItem(name="Feather Token", weight=-2),
    ]
    assert enc.compute_current_weight(items) == 1.0


@pytest.mark.parametrize("split", [[12], [6, 6], [1, 4, 7], [3, 3, 3, 3]])
def test_zero_weight_batching_ignores_split(split):
    items = [InventoryItem(name=f"trinket-{i}", weight=0, quantity=q) for i, q in enumerate(split)]
    assert enc.compute_current_weight(items) == 2


def test_zero_weight_below_batch_is_free():
    items = [InventoryItem(name="Pebble", weight=0, quantity=4)]
    assert enc.compute_current_weight(items) == 0


def test_coins_weight():
    currency = CurrencyRecord(
        physical=CoinPurse(copper=150, gold=40, platinum=10),
        bank=CoinPurse(gold=10_000),
    )
    assert enc.coins_weight(currency) == 2
    assert enc.compute_current_weight([], currency) == 2
    assert enc.compute_current_weight([], currency, coins_per_weight_unit=50) == 4


def test_bad_ratio_is_failure():
    assert is_failure(enc.compute_current_weight([], None, coins_per_weight_unit=0))
    assert is_failure(enc.compute_current_weight([], None, batch_size=0))


def test_exclude_equipped():
    items = [
        InventoryItem(name="Armor", weight=4, equipped=True),
        InventoryItem(name="Pack", weight=2),
    ]
    assert enc.compute_current_weight(items) == 6
    assert enc.compute_current_weight(items, include_equipped=False) == 2


def test_zero_weight_display_share():
    a = InventoryItem(name="Chalk", weight=0, quantity=6)
    b = InventoryItem(name="Nails", weight=0, quantity=4)
    items = [a, b]
    assert enc.zero_weight_display_share(a, items) == pytest.approx(1.2)
    assert enc.zero_weight_display_share(b, items) == pytest.approx(0.8)
    heavy = InventoryItem(name="Anvil", weight=10)
    assert enc.zero_weight_display_share(heavy, items) == 0.0


def test_size_modifiers():
    assert enc.size_carry_modifier(CreatureSize.TINY) == -5
    assert enc.size_carry_modifier("large") == 2
    assert enc.size_carry_modifier("colossal-2") == 10


def test_carry_snapshot():
    items = [InventoryItem(name="Shield", weight=3), InventoryItem(name="Beads", weight=0, quantity=10)]
    currency = CurrencyRecord(physical=CoinPurse(gold=250))
    snap = enc.carry_snapshot(2, "small", items, currency, other_modifiers=1)
    assert snap.base == 15
    assert snap.size_modifier == -2
    assert snap.total == 14
    assert snap.current_weight == 3 + 2 + 2
    assert snap.encumbrance_state is EncumbranceState.NORMAL
    assert snap.push_limit == 20
    assert snap.lift_limit == 10


def test_carry_snapshot_unknown_size():
    res = enc.carry_snapshot(2, "gigantic", [])
    assert is_failure(res)
    assert res.field == "size"


def test_carry_helpers():
    assert enc.carry_percentage(5, 10) == 50
    assert enc.carry_percentage(3, 0) == 100
    assert enc.can_carry_without_penalty(8, 2, 10)
    assert not enc.can_carry_without_penalty(8, 3, 10)
    assert enc.can_carry_at_all(15, 5, 10)
    assert not enc.can_carry_at_all(15, 6, 10)


def test_push_and_lift_floor():
    assert enc.push_limit(0) == 5
    assert enc.lift_limit(0) == 2
