import pytest

from ChaosTable import metrics
from ChaosTable.rules import damage
from ChaosTable.rules.errors import ErrorCode, is_failure
from ChaosTable.rules.notation import DiceExpression
from ChaosTable.rules.types import HitTier


@pytest.mark.parametrize(
    "net,tier",
    [(0, HitTier.GRAZE), (1, HitTier.NORMAL), (2, HitTier.SOLID), (3, HitTier.CRITICAL), (7, HitTier.CRITICAL)],
)
def test_resolve_hit_tier(net, tier):
    assert damage.resolve_hit_tier(net) is tier


def test_resolve_hit_tier_rejects_negative():
    res = damage.resolve_hit_tier(-1)
    assert is_failure(res)
    assert res.code is ErrorCode.OUT_OF_RANGE_INPUT


def test_graze_is_half_max_without_modifier(seeded_rng):
    out = damage.compute_damage(DiceExpression(2, 6, 3), HitTier.GRAZE, rng=seeded_rng)
    assert out.base == 6
    assert out.total == 6
    assert out.bonus is None
    assert out.rolls == ()


def test_graze_minimum_one(seeded_rng):
    out = damage.compute_damage(DiceExpression(1, 2, 0), HitTier.GRAZE, rng=seeded_rng)
    assert out.total == 1


def test_normal_rolls_dice_and_bonus(scripted):
    out = damage.compute_damage(
        DiceExpression(2, 6, 1),
        HitTier.NORMAL,
        bonus_dice=DiceExpression(1, 4, 0),
        rng=scripted(3, 5, 2),
    )
    assert out.base == 9
    assert out.bonus == 2
    assert out.total == 11
    assert out.rolls == (3, 5, 2)


def test_normal_clamps_negative_base(scripted):
    out = damage.compute_damage(DiceExpression(1, 4, -5), HitTier.NORMAL, rng=scripted(1))
    assert out.base == 0
    assert out.total == 0


def test_solid_maximizes(scripted):
    out = damage.compute_damage(DiceExpression(2, 6, 3), HitTier.SOLID, rng=scripted())
    assert out.base == 15
    assert out.critical_extra is None
    assert out.total == 15


def test_critical_adds_extra_dice_of_same_size(scripted):
    out = damage.compute_damage(
        DiceExpression(2, 6, 3), HitTier.CRITICAL, critical_extra_dice_count=2, rng=scripted(4, 1)
    )
    assert out.base == 15
    assert out.critical_extra == 5
    assert out.total == 20
    assert "+2d6" in out.description
    assert metrics.get_counter("rules.damage.critical") == 1


def test_critical_with_zero_extra_dice(scripted):
    out = damage.compute_damage(DiceExpression(1, 8, 0), HitTier.CRITICAL, rng=scripted())
    assert out.critical_extra == 0
    assert out.total == 8


def test_critical_faces_must_match_base(scripted):
    res = damage.compute_damage(
        DiceExpression(2, 6, 0), HitTier.CRITICAL, 1, critical_faces=8, rng=scripted(3)
    )
    assert is_failure(res)
    assert res.code is ErrorCode.OUT_OF_RANGE_INPUT
    assert res.field == "critical_faces"


def test_negative_critical_count_rejected(seeded_rng):
    res = damage.compute_damage(DiceExpression(1, 6), HitTier.CRITICAL, -1, rng=seeded_rng)
    assert res.field == "critical_extra_dice_count"


def test_manual_tier_may_downgrade():
    assert damage.check_manual_tier(HitTier.NORMAL, 3) is HitTier.NORMAL
    assert damage.check_manual_tier("graze", 1) is HitTier.GRAZE


def test_manual_tier_cannot_exceed_earned():
    res = damage.check_manual_tier("critical", 2)
    assert is_failure(res)
    assert res.field == "tier"
    assert is_failure(damage.check_manual_tier("brutal", 2))


def test_expected_damage_values():
    expr = DiceExpression(2, 6, 0)
    assert damage.expected_damage(expr, HitTier.GRAZE) == 6
    assert damage.expected_damage(expr, HitTier.NORMAL) == pytest.approx(7.0)
    assert damage.expected_damage(expr, HitTier.SOLID) == 12
    assert damage.expected_damage(expr, HitTier.CRITICAL, 2) == pytest.approx(19.0)


def test_expected_damage_ordering():
    for expr in [DiceExpression(1, 4, 0), DiceExpression(2, 6, 2), DiceExpression(3, 10, 1)]:
        values = [damage.expected_damage(expr, t, 1) for t in HitTier]
        assert values == sorted(values)


def test_expected_normal_accounts_for_clamp():
    # 1d4-3: totals -2,-1,0,1 clamp to 0,0,0,1
    assert damage.expected_damage(DiceExpression(1, 4, -3), HitTier.NORMAL) == pytest.approx(0.25)


def test_manual_tier_accepts_net_success_value():
    assert damage.check_manual_tier(2, 3) is HitTier.SOLID
    res = damage.check_manual_tier(9, 3)
    assert is_failure(res)
    assert res.field == "tier"


def test_compute_damage_accepts_int_tier(seeded_rng):
    out = damage.compute_damage(DiceExpression(2, 6, 3), 2, rng=seeded_rng)
    assert out.tier is HitTier.SOLID
    assert out.total == 15
