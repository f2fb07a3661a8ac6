from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

import structlog

from ChaosTable.config import Settings
from ChaosTable.schemas import CharacterRecord, CurrencyRecord, InventoryItem

from . import attack, damage, durability, encumbrance, notation, pool
from .damage import DamageBreakdown
from .dice import DiceRNG, RandomSource
from .durability import DurabilityTestResult, ItemDurability
from .encumbrance import CarryCapacitySnapshot
from .errors import ValidationFailure, returns_failure, unwrap
from .history import RollHistory, RollSink
from .notation import DiceExpression
from .pool import PoolDescriptor, PoolRollResult
from .types import CreatureSize, HitTier, ProficiencyTier

log = structlog.get_logger()


@dataclass(frozen=True)
class AttackResolution:
    pool: PoolDescriptor
    roll: PoolRollResult
    tier: HitTier
    damage: DamageBreakdown


class Ruleset(Protocol):
    """
    Interface the character sheet talks to, so the dice system behind it can
    be swapped without touching the sheet.
    """

    def parse_dice(self, text: str) -> DiceExpression | ValidationFailure: ...

    def build_attack_pool(
        self, character: CharacterRecord, skill_name: str, *, use_name: str | None = None
    ) -> PoolDescriptor | ValidationFailure: ...

    def roll_pool(
        self, descriptor: PoolDescriptor, cancellations: int = 0
    ) -> PoolRollResult | ValidationFailure: ...

    def resolve_attack(
        self,
        descriptor: PoolDescriptor,
        base_dice: DiceExpression | str,
        *,
        defender_cancellations: int = 0,
        critical_extra_dice: int = 0,
        bonus_dice: DiceExpression | str | None = None,
        chosen_tier: HitTier | str | int | None = None,
    ) -> AttackResolution | ValidationFailure: ...

    def test_durability(
        self, item_durability: ItemDurability
    ) -> DurabilityTestResult | ValidationFailure: ...

    def carry_snapshot(
        self,
        character: CharacterRecord,
        items: Iterable[InventoryItem],
        currency: CurrencyRecord | None = None,
    ) -> CarryCapacitySnapshot | ValidationFailure: ...


class ChaosRuleset:
    """
    Pool-of-successes implementation of the Ruleset interface.
    """

    def __init__(
        self,
        seed: int | None = None,
        *,
        rng: RandomSource | None = None,
        sink: RollSink | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or Settings()
        if seed is None:
            seed = self.settings.rng_seed
        self.rng: RandomSource = rng if rng is not None else DiceRNG(seed)
        # Without an explicit sink, rolls go to a history sized by the settings
        self.sink: RollSink = (
            sink if sink is not None else RollHistory(self.settings.roll_history_size)
        )

    def parse_dice(self, text: str) -> DiceExpression | ValidationFailure:
        return notation.parse(text)

    def build_attack_pool(
        self,
        character: CharacterRecord,
        skill_name: str,
        *,
        use_name: str | None = None,
        attribute_override: str | None = None,
        dice_modifier: int = 0,
    ) -> PoolDescriptor | ValidationFailure:
        return attack.attack_pool_for_character(
            character,
            skill_name,
            use_name=use_name,
            attribute_override=attribute_override,
            dice_modifier=dice_modifier,
            max_pool_size=self.settings.max_pool_size,
        )

    def compute_attack_pool(
        self, attribute_value: int, proficiency: ProficiencyTier | str, **kwargs
    ) -> PoolDescriptor | ValidationFailure:
        kwargs.setdefault("max_pool_size", self.settings.max_pool_size)
        return attack.compute_attack_pool(attribute_value, proficiency, **kwargs)

    def roll_pool(
        self, descriptor: PoolDescriptor, cancellations: int = 0
    ) -> PoolRollResult | ValidationFailure:
        return pool.roll_pool(descriptor, self.rng, cancellations)

    @returns_failure("engine")
    def resolve_attack(
        self,
        descriptor: PoolDescriptor,
        base_dice: DiceExpression | str,
        *,
        defender_cancellations: int = 0,
        critical_extra_dice: int = 0,
        bonus_dice: DiceExpression | str | None = None,
        chosen_tier: HitTier | str | int | None = None,
    ) -> AttackResolution:
        """Roll the pool, pick the hit tier and roll damage for it.

        ``chosen_tier`` lets the player take a lower tier than the roll earned.
        """
        if isinstance(base_dice, str):
            base_dice = unwrap(notation.parse(base_dice))
        if isinstance(bonus_dice, str):
            bonus_dice = unwrap(notation.parse(bonus_dice))

        roll = unwrap(pool.roll_pool(descriptor, self.rng, defender_cancellations))
        if chosen_tier is None:
            tier = unwrap(damage.resolve_hit_tier(roll.net_successes))
        else:
            tier = unwrap(damage.check_manual_tier(chosen_tier, roll.net_successes))
        dmg = unwrap(
            damage.compute_damage(
                base_dice, tier, critical_extra_dice, bonus_dice, rng=self.rng
            )
        )

        resolution = AttackResolution(pool=descriptor, roll=roll, tier=tier, damage=dmg)
        self.sink.record(resolution)
        log.info(
            "rules.attack.resolved",
            formula=descriptor.formula,
            net=roll.net_successes,
            tier=tier.name.lower(),
            damage=dmg.total,
        )
        return resolution

    def test_durability(
        self, item_durability: ItemDurability
    ) -> DurabilityTestResult | ValidationFailure:
        result = durability.test_durability(item_durability, self.rng)
        if not isinstance(result, ValidationFailure):
            self.sink.record(result)
        return result

    def carry_snapshot(
        self,
        character: CharacterRecord,
        items: Iterable[InventoryItem],
        currency: CurrencyRecord | None = None,
    ) -> CarryCapacitySnapshot | ValidationFailure:
        return encumbrance.carry_snapshot(
            character.attributes.get("body", 0),
            CreatureSize(character.size),
            items,
            currency,
            character.carry_modifiers,
            coins_per_weight_unit=self.settings.coins_per_weight_unit,
            batch_size=self.settings.zero_weight_batch_size,
        )
