import pytest
from pydantic import ValidationError

from ChaosTable.rules.errors import OutOfRangeInput, ValidationFailure, is_failure, unwrap
from ChaosTable.rules.types import DieSize, DurabilityState, ProficiencyTier
from ChaosTable.schemas import ActiveCondition, CharacterRecord, CoinPurse, InventoryItem


def test_character_rejects_negative_attributes():
    with pytest.raises(ValidationError):
        CharacterRecord(name="X", attributes={"body": -1})


def test_character_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        CharacterRecord(name="X", attributes={}, hp=10)


def test_condition_targets_validated():
    ActiveCondition(name="Dazed", targets=["all", "mind"])
    with pytest.raises(ValidationError):
        ActiveCondition(name="Odd", targets=["luck"])


def test_skill_proficiency_coerced(fighter):
    assert fighter.skills["blades"].proficiency is ProficiencyTier.VERSED
    assert fighter.skills["blades"].uses["heavy swing"].dice_modifier == 1


def test_item_with_durability():
    item = InventoryItem(
        name="Sword",
        weight=2,
        durability={"current_die": 6, "max_die": 8},
    )
    assert item.durability.current_die == DieSize.D6
    assert item.durability.state is DurabilityState.DAMAGED


def test_coin_purse_total():
    assert CoinPurse(copper=5, gold=3, platinum=2).total_coins == 10
    with pytest.raises(ValidationError):
        CoinPurse(gold=-1)


def test_unwrap_and_is_failure():
    failure = ValidationFailure(OutOfRangeInput.code, "nope", "field")
    assert is_failure(failure)
    assert not is_failure(3)
    assert unwrap(3) == 3
    with pytest.raises(OutOfRangeInput) as exc:
        unwrap(failure)
    assert exc.value.reported
    assert exc.value.failure == failure
