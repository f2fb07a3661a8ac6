# rules/notation.py

"""Dice notation codec: ``2d6+3`` expressions and the ``+1d`` critical shorthand."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import InvalidNotation, OutOfRangeInput, ValidationFailure, returns_failure
from .types import DieSize

_DICE_RE = re.compile(
    r"^\s*(?P<count>\d+)?\s*[dD]\s*(?P<sides>\d+)\s*(?:(?P<sign>[+\-])\s*(?P<mod>\d+))?\s*$"
)
_CRIT_RE = re.compile(r"^\s*\+\s*(?P<count>\d+)\s*[dD]\s*$")


@dataclass(frozen=True)
class DiceExpression:
    quantity: int
    faces: int
    modifier: int = 0

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise OutOfRangeInput(
                f"dice quantity must be at least 1, got {self.quantity}", field="quantity"
            )
        DieSize.from_faces(self.faces)

    @property
    def die(self) -> DieSize:
        return DieSize(self.faces)

    @property
    def dice_max(self) -> int:
        """Highest total the dice alone can show (modifier excluded)."""
        return self.quantity * self.faces

    def __str__(self) -> str:
        return format_dice(self)


def max_possible(expr: DiceExpression) -> int:
    return expr.quantity * expr.faces + expr.modifier


@returns_failure("notation")
def parse(text: str) -> DiceExpression:
    """Parse ``<quantity>?d<faces>((+|-)<modifier>)?``.

    Quantity defaults to 1 and modifier to 0. Faces must be on the supported
    ladder; anything that is not dice notation at all is InvalidNotation.
    """
    m = _DICE_RE.match(text or "")
    if not m:
        raise InvalidNotation(f"bad dice expression: {text!r}", field="notation")
    count = int(m.group("count") or 1)
    if count < 1:
        raise InvalidNotation(f"dice quantity must be at least 1: {text!r}", field="notation")
    sides = DieSize.from_faces(int(m.group("sides")), field="notation")
    mod = int(m.group("mod") or 0)
    if m.group("sign") == "-":
        mod = -mod
    return DiceExpression(quantity=count, faces=int(sides), modifier=mod)


@returns_failure("notation")
def parse_critical_shorthand(text: str) -> int:
    """Parse ``+<N>d`` and return N."""
    m = _CRIT_RE.match(text or "")
    if not m:
        raise InvalidNotation(f"bad critical dice shorthand: {text!r}", field="critical_dice")
    return int(m.group("count"))


def format_dice(expr: DiceExpression) -> str:
    suffix = f"{expr.modifier:+d}" if expr.modifier else ""
    return f"{expr.quantity}d{expr.faces}{suffix}"


def format_critical_shorthand(count: int) -> str:
    return f"+{count}d"


def canonical(text: str) -> str | ValidationFailure:
    """Canonical spelling of a dice expression, e.g. ``d6 + 0`` -> ``1d6``."""
    parsed = parse(text)
    if isinstance(parsed, ValidationFailure):
        return parsed
    return format_dice(parsed)


# Codec-style alias; ``format`` mirrors ``parse``.
format = format_dice  # noqa: A001
