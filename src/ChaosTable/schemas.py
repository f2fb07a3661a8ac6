# schemas.py

"""Records owned by the character sheet that the rules core reads.

The sheet persists these; the rules core only ever receives them as inputs.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ChaosTable.rules.durability import ItemDurability
from ChaosTable.rules.types import CreatureSize, ProficiencyTier

AttributeName = Literal["agility", "body", "influence", "mind", "essence", "instinct"]
ATTRIBUTES: tuple[str, ...] = ("agility", "body", "influence", "mind", "essence", "instinct")

# Condition target that applies to every attribute
ALL_ATTRIBUTES = "all"


class ActiveCondition(BaseModel):
    """A condition currently affecting the character and its dice penalty."""

    name: str
    targets: list[str] = Field(default_factory=list)
    dice_modifier: int = 0
    stacks: int = Field(default=1, ge=1)
    scales_with_stacks: bool = False

    @field_validator("targets")
    @classmethod
    def validate_targets(cls, v: list[str]):
        unknown = [t for t in v if t != ALL_ATTRIBUTES and t not in ATTRIBUTES]
        if unknown:
            raise ValueError(f"unknown condition targets: {unknown}")
        return v

    model_config = dict(extra="forbid", frozen=True)


class SkillUse(BaseModel):
    """Alternate way to use a skill: another attribute and/or extra dice."""

    name: str
    attribute: AttributeName | None = None
    dice_modifier: int = 0

    model_config = dict(extra="forbid", frozen=True)


class SkillRecord(BaseModel):
    key_attribute: AttributeName
    proficiency: ProficiencyTier = ProficiencyTier.UNTRAINED
    # Sum of the skill's own modifiers that add or remove dice
    dice_modifier: int = 0
    uses: dict[str, SkillUse] = Field(default_factory=dict)

    model_config = dict(extra="forbid", frozen=True)


class CharacterRecord(BaseModel):
    name: str
    level: int = Field(default=1, ge=1)
    attributes: dict[AttributeName, int]
    skills: dict[str, SkillRecord] = Field(default_factory=dict)
    signature_skill: str | None = None
    conditions: list[ActiveCondition] = Field(default_factory=list)
    size: CreatureSize = CreatureSize.MEDIUM
    # Item and ability bonuses to carry capacity
    carry_modifiers: int = 0

    @field_validator("attributes")
    @classmethod
    def validate_attributes(cls, v: dict[str, int]):
        negative = [k for k, val in v.items() if val < 0]
        if negative:
            raise ValueError(f"attributes cannot be negative: {negative}")
        return v

    model_config = dict(extra="forbid", frozen=True)


class InventoryItem(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=0)
    # None = weightless; 0 = counts toward the zero-weight batches
    weight: float | None = None
    equipped: bool = False
    durability: ItemDurability | None = None

    model_config = dict(extra="forbid", frozen=True)


class CoinPurse(BaseModel):
    copper: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)
    platinum: int = Field(default=0, ge=0)

    @property
    def total_coins(self) -> int:
        return self.copper + self.gold + self.platinum

    model_config = dict(extra="forbid", frozen=True)


class CurrencyRecord(BaseModel):
    # Only physical coins are carried; banked coins weigh nothing
    physical: CoinPurse = Field(default_factory=CoinPurse)
    bank: CoinPurse = Field(default_factory=CoinPurse)

    model_config = dict(extra="forbid", frozen=True)
