"""Attack formula calculator: character inputs -> dice pool descriptor.

Pure and deterministic so the sheet can preview the formula before a roll is
committed. Dice count is::

    attribute + signature bonus + use override dice + explicit modifier
        + condition penalty (attribute + "all")

A non-positive count becomes a penalty roll (roll 2, keep the lower); a
positive count is capped at the max pool size.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import structlog

from ChaosTable.schemas import ALL_ATTRIBUTES, ActiveCondition, CharacterRecord

from .errors import OutOfRangeInput, returns_failure
from .pool import PoolDescriptor
from .types import DieSize, ProficiencyTier

log = structlog.get_logger()

DEFAULT_MAX_POOL_SIZE = 8
MAX_SIGNATURE_BONUS = 3
SIGNATURE_LEVELS_PER_DIE = 5

PROFICIENCY_DIE: dict[ProficiencyTier, DieSize] = {
    ProficiencyTier.UNTRAINED: DieSize.D4,
    ProficiencyTier.ADEPT: DieSize.D6,
    ProficiencyTier.VERSED: DieSize.D8,
    ProficiencyTier.MASTER: DieSize.D10,
}


@dataclass(frozen=True)
class UseOverride:
    """Alternate attribute/modifier bundle for a specific use of a skill."""

    name: str | None = None
    attribute: str | None = None
    dice_modifier: int = 0


def proficiency_die(tier: ProficiencyTier | str) -> DieSize:
    return PROFICIENCY_DIE[ProficiencyTier.coerce(tier)]


def signature_bonus(is_signature: bool, level: int = 1) -> int:
    """+1 die per 5 character levels (rounded up) for the signature skill, max +3."""
    if not is_signature:
        return 0
    return min(MAX_SIGNATURE_BONUS, math.ceil(max(1, level) / SIGNATURE_LEVELS_PER_DIE))


def aggregate_condition_penalties(conditions: Iterable[ActiveCondition]) -> dict[str, int]:
    """Sum condition dice modifiers per target attribute (or ``"all"``)."""
    penalties: dict[str, int] = {}
    for cond in conditions:
        if not cond.dice_modifier:
            continue
        amount = cond.dice_modifier * cond.stacks if cond.scales_with_stacks else cond.dice_modifier
        for target in cond.targets:
            penalties[target] = penalties.get(target, 0) + amount
    return penalties


def penalty_for_attribute(penalties: Mapping[str, int] | None, attribute: str | None) -> int:
    if not penalties:
        return 0
    total = penalties.get(ALL_ATTRIBUTES, 0)
    if attribute is not None and attribute != ALL_ATTRIBUTES:
        total += penalties.get(attribute, 0)
    return total


def _build_pool(
    attribute_value: int,
    proficiency: ProficiencyTier | str,
    *,
    attribute: str | None,
    is_signature: bool,
    character_level: int,
    use_override: UseOverride | None,
    dice_modifier: int,
    condition_penalties: Mapping[str, int] | None,
    max_pool_size: int,
) -> PoolDescriptor:
    if attribute_value < 0:
        raise OutOfRangeInput(
            f"attribute value cannot be negative, got {attribute_value}", field="attribute_value"
        )
    if max_pool_size < 1:
        raise OutOfRangeInput(
            f"max pool size must be at least 1, got {max_pool_size}", field="max_pool_size"
        )
    tier = ProficiencyTier.coerce(proficiency)
    die = PROFICIENCY_DIE[tier]

    if use_override is not None and use_override.attribute:
        attribute = use_override.attribute
    use_dice = use_override.dice_modifier if use_override is not None else 0

    total = (
        attribute_value
        + signature_bonus(is_signature, character_level)
        + use_dice
        + dice_modifier
        + penalty_for_attribute(condition_penalties, attribute)
    )
    if total <= 0:
        return PoolDescriptor(dice_count=0, die_size=die, is_penalty_roll=True, attribute=attribute)
    return PoolDescriptor(
        dice_count=min(total, max_pool_size), die_size=die, attribute=attribute
    )


@returns_failure("attack")
def compute_attack_pool(
    attribute_value: int,
    proficiency: ProficiencyTier | str,
    *,
    attribute: str | None = None,
    is_signature: bool = False,
    character_level: int = 1,
    use_override: UseOverride | None = None,
    dice_modifier: int = 0,
    condition_penalties: Mapping[str, int] | None = None,
    max_pool_size: int = DEFAULT_MAX_POOL_SIZE,
) -> PoolDescriptor:
    """Build the pool descriptor for an attack or skill test.

    ``attribute`` names the governing attribute so condition penalties keyed
    by it apply; a ``use_override`` naming another attribute takes precedence
    (the caller supplies that attribute's value as ``attribute_value``).
    """
    return _build_pool(
        attribute_value,
        proficiency,
        attribute=attribute,
        is_signature=is_signature,
        character_level=character_level,
        use_override=use_override,
        dice_modifier=dice_modifier,
        condition_penalties=condition_penalties,
        max_pool_size=max_pool_size,
    )


@returns_failure("attack")
def attack_pool_for_character(
    character: CharacterRecord,
    skill_name: str,
    *,
    use_name: str | None = None,
    attribute_override: str | None = None,
    dice_modifier: int = 0,
    max_pool_size: int = DEFAULT_MAX_POOL_SIZE,
) -> PoolDescriptor:
    """Resolve skill, use and attribute from a character record, then build the pool."""
    skill = character.skills.get(skill_name)
    if skill is None:
        raise OutOfRangeInput(f"unknown skill: {skill_name!r}", field="skill")

    override: UseOverride | None = None
    attribute = skill.key_attribute
    if use_name is not None:
        use = skill.uses.get(use_name)
        if use is None:
            raise OutOfRangeInput(
                f"skill {skill_name!r} has no use {use_name!r}", field="use"
            )
        override = UseOverride(name=use.name, attribute=use.attribute, dice_modifier=use.dice_modifier)
        attribute = use.attribute or attribute
    if attribute_override is not None:
        attribute = attribute_override
        override = UseOverride(
            name=override.name if override else None,
            attribute=attribute_override,
            dice_modifier=override.dice_modifier if override else 0,
        )

    if attribute not in character.attributes:
        raise OutOfRangeInput(f"character has no attribute {attribute!r}", field="attribute")

    pool = _build_pool(
        character.attributes[attribute],
        skill.proficiency,
        attribute=attribute,
        is_signature=character.signature_skill == skill_name,
        character_level=character.level,
        use_override=override,
        dice_modifier=skill.dice_modifier + dice_modifier,
        condition_penalties=aggregate_condition_penalties(character.conditions),
        max_pool_size=max_pool_size,
    )
    log.debug(
        "rules.attack.pool_built",
        character=character.name,
        skill=skill_name,
        use=use_name,
        formula=pool.formula,
    )
    return pool
