"""Carry capacity and encumbrance.

Capacity: 5 + 5 x Body + size modifier + other modifiers (never below 0).

Carried weight:
- items with no weight (None) count for nothing;
- items with a nonzero weight count ``weight x quantity`` (negative weights
  lighten the load);
- zero-weight units are pooled across the whole inventory and every full
  batch of 5 units weighs 1;
- physical coins weigh 1 per 100 coins.

States: Normal up to capacity, Overloaded up to twice capacity, Immobilized beyond.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from ChaosTable.schemas import CurrencyRecord, InventoryItem

from .errors import OutOfRangeInput, returns_failure
from .types import CreatureSize, EncumbranceState

log = structlog.get_logger()

BASE_CARRY_CAPACITY = 5
BODY_CARRY_MULTIPLIER = 5
ZERO_WEIGHT_BATCH_SIZE = 5
COINS_PER_WEIGHT_UNIT = 100

SIZE_CARRY_MODIFIERS: dict[CreatureSize, int] = {
    CreatureSize.TINY: -5,
    CreatureSize.SMALL: -2,
    CreatureSize.MEDIUM: 0,
    CreatureSize.LARGE: 2,
    CreatureSize.HUGE_1: 5,
    CreatureSize.HUGE_2: 5,
    CreatureSize.HUGE_3: 5,
    CreatureSize.COLOSSAL_1: 10,
    CreatureSize.COLOSSAL_2: 10,
    CreatureSize.COLOSSAL_3: 10,
}


@dataclass(frozen=True)
class CarryCapacitySnapshot:
    base: int
    size_modifier: int
    other_modifiers: int
    total: int
    current_weight: float
    encumbrance_state: EncumbranceState
    push_limit: int
    lift_limit: int


def _check_body(body: int) -> None:
    if body < 0:
        raise OutOfRangeInput(f"body cannot be negative, got {body}", field="body")


def base_capacity(body: int) -> int:
    return BASE_CARRY_CAPACITY + body * BODY_CARRY_MULTIPLIER


def size_carry_modifier(size: CreatureSize | str) -> int:
    return SIZE_CARRY_MODIFIERS[CreatureSize(size)]


@returns_failure("encumbrance")
def compute_capacity(body: int, size_modifier: int = 0, other_modifiers: int = 0) -> int:
    _check_body(body)
    return max(0, math.floor(base_capacity(body) + size_modifier + other_modifiers))


def push_limit(body: int) -> int:
    return max(5, 10 * body)


def lift_limit(body: int) -> int:
    return max(2, 5 * body)


def _carried(items: Iterable[InventoryItem], include_equipped: bool) -> list[InventoryItem]:
    return [it for it in items if include_equipped or not it.equipped]


def count_zero_weight_units(
    items: Iterable[InventoryItem], include_equipped: bool = True
) -> int:
    return sum(it.quantity for it in _carried(items, include_equipped) if it.weight == 0)


def _items_weight(items: list[InventoryItem], batch_size: int) -> float:
    total: float = 0
    zero_units = 0
    for item in items:
        if item.weight is None:
            continue
        if item.weight == 0:
            zero_units += item.quantity
            continue
        total += item.weight * item.quantity
    return total + zero_units // batch_size


def coins_weight(currency: CurrencyRecord | None, coins_per_weight_unit: int = COINS_PER_WEIGHT_UNIT) -> int:
    if currency is None:
        return 0
    return currency.physical.total_coins // coins_per_weight_unit


@returns_failure("encumbrance")
def compute_current_weight(
    items: Iterable[InventoryItem],
    currency: CurrencyRecord | None = None,
    *,
    coins_per_weight_unit: int = COINS_PER_WEIGHT_UNIT,
    include_equipped: bool = True,
    batch_size: int = ZERO_WEIGHT_BATCH_SIZE,
) -> float:
    if coins_per_weight_unit < 1:
        raise OutOfRangeInput(
            f"coins per weight unit must be positive, got {coins_per_weight_unit}",
            field="coins_per_weight_unit",
        )
    if batch_size < 1:
        raise OutOfRangeInput(f"batch size must be positive, got {batch_size}", field="batch_size")
    carried = _carried(items, include_equipped)
    return _items_weight(carried, batch_size) + coins_weight(currency, coins_per_weight_unit)


def zero_weight_display_share(
    item: InventoryItem,
    items: Iterable[InventoryItem],
    batch_size: int = ZERO_WEIGHT_BATCH_SIZE,
) -> float:
    """This item's proportional slice of the zero-weight batches, for tooltips.

    Only the inventory-wide total is exact; per-item slices are display-only.
    """
    if item.weight != 0:
        return 0.0
    total_units = count_zero_weight_units(items)
    if total_units < batch_size:
        return 0.0
    return (total_units // batch_size) * (item.quantity / total_units)


def classify(current_weight: float, capacity_total: float) -> EncumbranceState:
    if capacity_total <= 0:
        return EncumbranceState.NORMAL if current_weight <= 0 else EncumbranceState.IMMOBILIZED
    if current_weight <= capacity_total:
        return EncumbranceState.NORMAL
    if current_weight <= capacity_total * 2:
        return EncumbranceState.OVERLOADED
    return EncumbranceState.IMMOBILIZED


def carry_percentage(current_weight: float, capacity_total: float) -> int:
    if capacity_total <= 0:
        return 100 if current_weight > 0 else 0
    return round(current_weight / capacity_total * 100)


def can_carry_without_penalty(current_weight: float, additional: float, capacity_total: float) -> bool:
    return current_weight + additional <= capacity_total


def can_carry_at_all(current_weight: float, additional: float, capacity_total: float) -> bool:
    return current_weight + additional <= capacity_total * 2


@returns_failure("encumbrance")
def carry_snapshot(
    body: int,
    size: CreatureSize | str,
    items: Iterable[InventoryItem],
    currency: CurrencyRecord | None = None,
    other_modifiers: int = 0,
    *,
    coins_per_weight_unit: int = COINS_PER_WEIGHT_UNIT,
    batch_size: int = ZERO_WEIGHT_BATCH_SIZE,
) -> CarryCapacitySnapshot:
    _check_body(body)
    try:
        size_mod = size_carry_modifier(size)
    except ValueError:
        raise OutOfRangeInput(f"unknown creature size: {size!r}", field="size") from None
    if coins_per_weight_unit < 1 or batch_size < 1:
        raise OutOfRangeInput("weight ratios must be positive", field="coins_per_weight_unit")

    total = max(0, math.floor(base_capacity(body) + size_mod + other_modifiers))
    weight = _items_weight(_carried(items, True), batch_size) + coins_weight(
        currency, coins_per_weight_unit
    )
    snapshot = CarryCapacitySnapshot(
        base=base_capacity(body),
        size_modifier=size_mod,
        other_modifiers=other_modifiers,
        total=total,
        current_weight=weight,
        encumbrance_state=classify(weight, total),
        push_limit=push_limit(body),
        lift_limit=lift_limit(body),
    )
    log.debug(
        "rules.encumbrance.snapshot",
        total=total,
        weight=weight,
        state=snapshot.encumbrance_state.value,
    )
    return snapshot
