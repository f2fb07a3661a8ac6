"""Pool roller and success evaluator.

A pool is N dice of one size. Each die at or above the size's threshold is a
success; defender cancellations are subtracted and the net is floored at zero.
A penalty roll draws two dice and only the lower one counts.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from ChaosTable.metrics import inc_counter, observe_histogram

from .dice import RandomSource, roll_dice
from .errors import OutOfRangeInput, returns_failure
from .types import DieSize

log = structlog.get_logger()

# Roughly the upper half of each die counts as a success.
SUCCESS_THRESHOLDS: dict[DieSize, int] = {
    DieSize.D2: 2,
    DieSize.D3: 2,
    DieSize.D4: 3,
    DieSize.D6: 4,
    DieSize.D8: 5,
    DieSize.D10: 6,
    DieSize.D12: 7,
    DieSize.D20: 11,
    DieSize.D100: 51,
}

PENALTY_ROLL_DICE = 2


@dataclass(frozen=True)
class PoolDescriptor:
    dice_count: int
    die_size: DieSize
    is_penalty_roll: bool = False
    # Attribute the pool was built from, for display
    attribute: str | None = None

    def __post_init__(self) -> None:
        # Plain face counts (8) are accepted and stored as DieSize
        object.__setattr__(self, "die_size", DieSize.from_faces(self.die_size, field="die_size"))
        if self.dice_count < 0:
            raise OutOfRangeInput(
                f"dice count cannot be negative, got {self.dice_count}", field="dice_count"
            )

    @property
    def dice_to_roll(self) -> int:
        return PENALTY_ROLL_DICE if self.is_penalty_roll else self.dice_count

    @property
    def formula(self) -> str:
        if self.is_penalty_roll:
            return f"{PENALTY_ROLL_DICE}{self.die_size.label} (keep lower)"
        return f"{self.dice_count}{self.die_size.label}"


@dataclass(frozen=True)
class PoolRollResult:
    rolls: tuple[int, ...]
    # Dice that count toward successes; the lower die only on a penalty roll
    kept: tuple[int, ...]
    die_size: DieSize
    successes: int
    cancellations: int
    net_successes: int
    is_penalty_roll: bool = False


def success_threshold(die_size: DieSize) -> int:
    return SUCCESS_THRESHOLDS[die_size]


def count_successes(rolls: Sequence[int], die_size: DieSize) -> int:
    threshold = success_threshold(die_size)
    return sum(1 for r in rolls if r >= threshold)


def net_successes(successes: int, cancellations: int) -> int:
    return max(0, successes - cancellations)


def _evaluate(
    rolls: tuple[int, ...], die_size: DieSize, cancellations: int, is_penalty_roll: bool
) -> PoolRollResult:
    if cancellations < 0:
        raise OutOfRangeInput(
            f"cancellations cannot be negative, got {cancellations}", field="cancellations"
        )
    for r in rolls:
        if not 1 <= r <= die_size.value:
            raise OutOfRangeInput(f"roll {r} is not on a {die_size.label}", field="rolls")
    if is_penalty_roll:
        if len(rolls) != PENALTY_ROLL_DICE:
            raise OutOfRangeInput(
                f"a penalty roll needs exactly {PENALTY_ROLL_DICE} dice, got {len(rolls)}",
                field="rolls",
            )
        kept: tuple[int, ...] = (min(rolls),)
    else:
        kept = rolls
    successes = count_successes(kept, die_size)
    return PoolRollResult(
        rolls=rolls,
        kept=kept,
        die_size=die_size,
        successes=successes,
        cancellations=cancellations,
        net_successes=net_successes(successes, cancellations),
        is_penalty_roll=is_penalty_roll,
    )


@returns_failure("pool")
def evaluate_rolls(
    rolls: Sequence[int],
    die_size: DieSize,
    *,
    cancellations: int = 0,
    is_penalty_roll: bool = False,
) -> PoolRollResult:
    """Count successes for dice that were already rolled."""
    die = DieSize.from_faces(die_size, field="die_size")
    return _evaluate(tuple(rolls), die, cancellations, is_penalty_roll)


@returns_failure("pool")
def roll_pool(
    descriptor: PoolDescriptor, rng: RandomSource, cancellations: int = 0
) -> PoolRollResult:
    if cancellations < 0:
        raise OutOfRangeInput(
            f"cancellations cannot be negative, got {cancellations}", field="cancellations"
        )
    rolls = roll_dice(rng, descriptor.dice_to_roll, descriptor.die_size.value)
    result = _evaluate(rolls, descriptor.die_size, cancellations, descriptor.is_penalty_roll)

    inc_counter("rules.pool.rolled")
    if descriptor.is_penalty_roll:
        inc_counter("rules.pool.penalty")
    observe_histogram("rules.pool.size", descriptor.dice_to_roll)
    log.debug(
        "rules.pool.rolled",
        formula=descriptor.formula,
        rolls=list(result.rolls),
        successes=result.successes,
        cancellations=cancellations,
        net=result.net_successes,
    )
    return result
