"""Hit-tier resolution and per-tier damage.

Tiers by net successes: 0 Graze, 1 Normal, 2 Solid, 3+ Critical.

Damage by tier:
- Graze: half the dice maximum (rounded down, minimum 1); the modifier is dropped.
- Normal: dice rolled + modifier, plus bonus dice rolled.
- Solid: dice maximized + modifier, plus bonus dice rolled.
- Critical: Solid plus the extra critical dice (same face size) rolled, no modifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import assert_never

import structlog

from ChaosTable.metrics import inc_counter

from .dice import RandomSource, roll_dice, roll_expression
from .errors import OutOfRangeInput, returns_failure
from .notation import DiceExpression, format_critical_shorthand, format_dice, max_possible
from .types import DieSize, HitTier

log = structlog.get_logger()


@dataclass(frozen=True)
class DamageBreakdown:
    tier: HitTier
    base: int
    bonus: int | None
    critical_extra: int | None
    total: int
    description: str
    rolls: tuple[int, ...] = ()


def _hit_tier(net_successes: int) -> HitTier:
    if net_successes < 0:
        raise OutOfRangeInput(
            f"net successes cannot be negative, got {net_successes}", field="net_successes"
        )
    return HitTier(min(net_successes, HitTier.CRITICAL))


@returns_failure("damage")
def resolve_hit_tier(net_successes: int) -> HitTier:
    return _hit_tier(net_successes)


def _coerce_tier(value: HitTier | str | int) -> HitTier:
    """Accept a HitTier, its name (``"solid"``) or its net-success value (``2``)."""
    try:
        if isinstance(value, str):
            return HitTier[value.strip().upper()]
        return HitTier(value)
    except (KeyError, ValueError):
        raise OutOfRangeInput(f"unknown hit tier: {value!r}", field="tier") from None


@returns_failure("damage")
def check_manual_tier(chosen: HitTier | str | int, net_successes: int) -> HitTier:
    """Accept a tier picked by hand as long as the roll earned at least that much."""
    chosen = _coerce_tier(chosen)
    earned = _hit_tier(net_successes)
    if chosen > earned:
        raise OutOfRangeInput(
            f"{chosen.name.lower()} needs {chosen.value} net successes, roll earned "
            f"{earned.name.lower()}",
            field="tier",
        )
    return chosen


def _validate(
    base_dice: DiceExpression,
    critical_extra_dice_count: int,
    bonus_dice: DiceExpression | None,
    critical_faces: int | None,
) -> None:
    DieSize.from_faces(base_dice.faces, field="base_dice")
    if bonus_dice is not None:
        DieSize.from_faces(bonus_dice.faces, field="bonus_dice")
    if critical_extra_dice_count < 0:
        raise OutOfRangeInput(
            f"critical extra dice cannot be negative, got {critical_extra_dice_count}",
            field="critical_extra_dice_count",
        )
    if critical_faces is not None and critical_faces != base_dice.faces:
        raise OutOfRangeInput(
            f"critical dice must be d{base_dice.faces} like the base damage, got d{critical_faces}",
            field="critical_faces",
        )


@returns_failure("damage")
def compute_damage(
    base_dice: DiceExpression,
    tier: HitTier | str | int,
    critical_extra_dice_count: int = 0,
    bonus_dice: DiceExpression | None = None,
    *,
    rng: RandomSource,
    critical_faces: int | None = None,
) -> DamageBreakdown:
    tier = _coerce_tier(tier)
    _validate(base_dice, critical_extra_dice_count, bonus_dice, critical_faces)

    rolls: list[int] = []
    bonus: int | None = None
    critical_extra: int | None = None

    def _roll_bonus() -> int | None:
        if bonus_dice is None:
            return None
        bonus_roll = roll_expression(bonus_dice, rng)
        rolls.extend(bonus_roll.rolls)
        return max(0, bonus_roll.total)

    match tier:
        case HitTier.GRAZE:
            base = max(1, base_dice.dice_max // 2)
            description = f"graze: {base_dice.quantity}x{base_dice.faces} / 2 = {base}"
        case HitTier.NORMAL:
            base_roll = roll_expression(base_dice, rng)
            rolls.extend(base_roll.rolls)
            base = max(0, base_roll.total)
            bonus = _roll_bonus()
            description = f"normal: {format_dice(base_dice)} rolled {list(base_roll.rolls)} = {base}"
        case HitTier.SOLID | HitTier.CRITICAL:
            base = max(0, max_possible(base_dice))
            bonus = _roll_bonus()
            description = f"{tier.name.lower()}: {format_dice(base_dice)} maximized = {base}"
            if tier is HitTier.CRITICAL:
                extra_rolls = roll_dice(rng, critical_extra_dice_count, base_dice.faces)
                rolls.extend(extra_rolls)
                critical_extra = sum(extra_rolls)
                description += (
                    f", {format_critical_shorthand(critical_extra_dice_count)}"
                    f"{base_dice.faces} extra = {critical_extra}"
                )
        case _:
            assert_never(tier)

    if bonus is not None:
        description += f", bonus {format_dice(bonus_dice)} = {bonus}"
    total = base + (bonus or 0) + (critical_extra or 0)

    inc_counter(f"rules.damage.{tier.name.lower()}")
    log.debug("rules.damage.computed", tier=tier.name.lower(), total=total, rolls=rolls)
    return DamageBreakdown(
        tier=tier,
        base=base,
        bonus=bonus,
        critical_extra=critical_extra,
        total=total,
        description=description,
        rolls=tuple(rolls),
    )


@lru_cache(maxsize=256)
def _sum_distribution(quantity: int, faces: int) -> dict[int, float]:
    """Probability of each total when summing ``quantity`` dice of ``faces``."""
    dist = {0: 1.0}
    p = 1.0 / faces
    for _ in range(quantity):
        nxt: dict[int, float] = {}
        for total, prob in dist.items():
            for face in range(1, faces + 1):
                nxt[total + face] = nxt.get(total + face, 0.0) + prob * p
        dist = nxt
    return dist


def _expected_clamped(expr: DiceExpression) -> float:
    """E[max(0, roll(expr))]."""
    dist = _sum_distribution(expr.quantity, expr.faces)
    return sum(max(0, total + expr.modifier) * prob for total, prob in dist.items())


@returns_failure("damage")
def expected_damage(
    base_dice: DiceExpression,
    tier: HitTier | str | int,
    critical_extra_dice_count: int = 0,
    bonus_dice: DiceExpression | None = None,
) -> float:
    """Mean of ``compute_damage`` for the same inputs, without rolling."""
    tier = _coerce_tier(tier)
    _validate(base_dice, critical_extra_dice_count, bonus_dice, None)
    bonus = _expected_clamped(bonus_dice) if bonus_dice is not None else 0.0
    match tier:
        case HitTier.GRAZE:
            return float(max(1, base_dice.dice_max // 2))
        case HitTier.NORMAL:
            return _expected_clamped(base_dice) + bonus
        case HitTier.SOLID:
            return max(0, max_possible(base_dice)) + bonus
        case HitTier.CRITICAL:
            extra = critical_extra_dice_count * (base_dice.faces + 1) / 2
            return max(0, max_possible(base_dice)) + bonus + extra
        case _:
            assert_never(tier)
