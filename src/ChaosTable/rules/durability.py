"""Item durability as a die that only ever steps down.

Testing an item rolls its current durability die. A 1 steps the die down one
position on the ladder; a 1 on the ladder's lowest die breaks the item. Any
other result leaves it untouched. Repair (resetting to the max die) belongs
to the inventory layer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import assert_never

import structlog

from ChaosTable.metrics import inc_counter

from .dice import RandomSource
from .errors import OutOfRangeInput, UnsupportedDie, returns_failure
from .types import DieSize, DurabilityState

log = structlog.get_logger()

DURABILITY_LADDER: tuple[DieSize, ...] = tuple(DieSize)

# Dice offered when creating an item; d3 only appears as a step-down
DURABILITY_DIE_OPTIONS: tuple[DieSize, ...] = (
    DieSize.D2,
    DieSize.D4,
    DieSize.D6,
    DieSize.D8,
    DieSize.D10,
    DieSize.D12,
    DieSize.D20,
    DieSize.D100,
)

FLOOR_PIP = 1


@dataclass(frozen=True)
class ItemDurability:
    current_die: DieSize
    max_die: DieSize
    broken: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "current_die", DieSize.from_faces(self.current_die, field="current_die")
        )
        object.__setattr__(self, "max_die", DieSize.from_faces(self.max_die, field="max_die"))
        if self.current_die > self.max_die:
            raise OutOfRangeInput(
                f"current die {self.current_die.label} exceeds max die {self.max_die.label}",
                field="current_die",
            )

    @property
    def state(self) -> DurabilityState:
        return durability_state(self.current_die, self.max_die, self.broken)


@dataclass(frozen=True)
class DurabilityTestResult:
    # None when the item was already broken and nothing was rolled
    roll: int | None
    damaged: bool
    previous_die: DieSize
    new_die: DieSize
    durability: ItemDurability

    @property
    def new_state(self) -> DurabilityState:
        return self.durability.state


def durability_state(current_die: DieSize, max_die: DieSize, broken: bool) -> DurabilityState:
    if broken:
        return DurabilityState.BROKEN
    if current_die == max_die:
        return DurabilityState.INTACT
    return DurabilityState.DAMAGED


@returns_failure("durability")
def create_item_durability(max_die: DieSize | int) -> ItemDurability:
    die = DieSize.from_faces(max_die, field="max_die")
    if die not in DURABILITY_DIE_OPTIONS:
        raise UnsupportedDie(
            f"{die.label} is not offered as a starting durability die", field="max_die"
        )
    return ItemDurability(current_die=die, max_die=die)


def _ladder_index(die: DieSize, ladder: Sequence[DieSize]) -> int:
    try:
        return list(ladder).index(die)
    except ValueError:
        raise UnsupportedDie(f"{die.label} is not on the durability ladder", field="die") from None


def step_down(die: DieSize, ladder: Sequence[DieSize] = DURABILITY_LADDER) -> DieSize | None:
    """Next die down the ladder, or None when ``die`` is the floor."""
    idx = _ladder_index(die, ladder)
    if idx == 0:
        return None
    return ladder[idx - 1]


def _apply(
    durability: ItemDurability, roll: int, ladder: Sequence[DieSize]
) -> DurabilityTestResult:
    previous = durability.current_die
    _ladder_index(durability.max_die, ladder)
    if roll != FLOOR_PIP:
        return DurabilityTestResult(
            roll=roll,
            damaged=False,
            previous_die=previous,
            new_die=previous,
            durability=durability,
        )

    lower = step_down(previous, ladder)
    if lower is None:
        after = replace(durability, broken=True)
        inc_counter("rules.durability.broken")
    else:
        after = replace(durability, current_die=lower)
    return DurabilityTestResult(
        roll=roll,
        damaged=True,
        previous_die=previous,
        new_die=after.current_die,
        durability=after,
    )


def _already_broken(durability: ItemDurability) -> DurabilityTestResult:
    return DurabilityTestResult(
        roll=None,
        damaged=False,
        previous_die=durability.current_die,
        new_die=durability.current_die,
        durability=durability,
    )


@returns_failure("durability")
def apply_durability_roll(
    durability: ItemDurability, roll: int, ladder: Sequence[DieSize] = DURABILITY_LADDER
) -> DurabilityTestResult:
    """Apply a durability roll made outside the core (e.g. physical dice)."""
    if durability.broken:
        return _already_broken(durability)
    if not 1 <= roll <= durability.current_die.value:
        raise OutOfRangeInput(
            f"roll {roll} is not on a {durability.current_die.label}", field="roll"
        )
    return _apply(durability, roll, ladder)


@returns_failure("durability")
def test_durability(
    durability: ItemDurability,
    rng: RandomSource,
    ladder: Sequence[DieSize] = DURABILITY_LADDER,
) -> DurabilityTestResult:
    if durability.broken:
        return _already_broken(durability)
    _ladder_index(durability.current_die, ladder)
    roll = rng.next(durability.current_die.value)
    result = _apply(durability, roll, ladder)
    log.debug(
        "rules.durability.tested",
        die=result.previous_die.label,
        roll=roll,
        new_die=result.new_die.label,
        state=result.new_state.value,
    )
    return result


@returns_failure("durability")
def durability_percent(
    durability: ItemDurability, ladder: Sequence[DieSize] = DURABILITY_LADDER
) -> int:
    """Remaining durability as 0-100, for progress bars."""
    match durability.state:
        case DurabilityState.BROKEN:
            return 0
        case DurabilityState.INTACT:
            return 100
        case DurabilityState.DAMAGED:
            current = _ladder_index(durability.current_die, ladder)
            top = _ladder_index(durability.max_die, ladder)
            return round(current / top * 100)
        case _:
            assert_never(durability.state)
