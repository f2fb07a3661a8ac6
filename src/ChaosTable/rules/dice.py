# rules/dice.py

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

import structlog

from .errors import OutOfRangeInput
from .notation import DiceExpression, format_dice

log = structlog.get_logger()


class RandomSource(Protocol):
    """The one place randomness enters the rules core."""

    def next(self, max_inclusive: int) -> int:
        """Return a uniform integer in ``1..max_inclusive``."""
        ...


@dataclass(frozen=True)
class DiceRoll:
    expr: str
    rolls: tuple[int, ...]
    total: int
    modifier: int
    faces: int
    quantity: int


class DiceRNG:
    """Seedable random source; production callers leave ``seed`` unset."""

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def next(self, max_inclusive: int) -> int:
        if max_inclusive < 1:
            raise OutOfRangeInput(f"cannot draw from 1..{max_inclusive}", field="max_inclusive")
        return self._rng.randint(1, max_inclusive)


class ScriptedRandomSource:
    """Replays a fixed sequence of draws.

    Used in tests and when a player types in results from physical dice.
    """

    def __init__(self, values: Iterable[int]):
        self._values = list(values)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._values) - self._pos

    def next(self, max_inclusive: int) -> int:
        if self._pos >= len(self._values):
            raise OutOfRangeInput("scripted dice exhausted", field="rolls")
        value = self._values[self._pos]
        if not 1 <= value <= max_inclusive:
            raise OutOfRangeInput(
                f"scripted roll {value} outside 1..{max_inclusive}", field="rolls"
            )
        self._pos += 1
        return value


def roll_dice(rng: RandomSource, quantity: int, faces: int) -> tuple[int, ...]:
    return tuple(rng.next(faces) for _ in range(quantity))


def roll_expression(expr: DiceExpression, rng: RandomSource) -> DiceRoll:
    """Roll ``expr`` and add its modifier; no clamping is applied here."""
    rolls = roll_dice(rng, expr.quantity, expr.faces)
    out = DiceRoll(
        expr=format_dice(expr),
        rolls=rolls,
        total=sum(rolls) + expr.modifier,
        modifier=expr.modifier,
        faces=expr.faces,
        quantity=expr.quantity,
    )
    log.debug("rules.dice.roll.result", expr=out.expr, rolls=list(out.rolls), total=out.total)
    return out
