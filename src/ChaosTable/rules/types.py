"""Closed vocabularies shared across the rules core."""

from __future__ import annotations

import enum

from .errors import OutOfRangeInput, UnsupportedDie


class DieSize(enum.IntEnum):
    """Supported die face counts, in ladder order (smallest first)."""

    D2 = 2
    D3 = 3
    D4 = 4
    D6 = 6
    D8 = 8
    D10 = 10
    D12 = 12
    D20 = 20
    D100 = 100

    @property
    def label(self) -> str:
        return f"d{self.value}"

    @classmethod
    def from_faces(cls, faces: int, *, field: str = "faces") -> DieSize:
        try:
            return cls(int(faces))
        except (TypeError, ValueError):
            raise UnsupportedDie(f"unsupported die: d{faces}", field=field) from None

    @classmethod
    def from_label(cls, label: str, *, field: str = "die") -> DieSize:
        text = str(label).strip().lower()
        if not text.startswith("d") or not text[1:].isdigit():
            raise UnsupportedDie(f"unsupported die: {label!r}", field=field)
        return cls.from_faces(int(text[1:]), field=field)


SUPPORTED_FACES: tuple[int, ...] = tuple(d.value for d in DieSize)


class ProficiencyTier(str, enum.Enum):
    UNTRAINED = "untrained"
    ADEPT = "adept"
    VERSED = "versed"
    MASTER = "master"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    @classmethod
    def coerce(cls, value: str | ProficiencyTier) -> ProficiencyTier:
        if isinstance(value, ProficiencyTier):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise OutOfRangeInput(
                f"unknown proficiency tier: {value!r}", field="proficiency"
            ) from None


_TIER_ORDER: tuple[ProficiencyTier, ...] = (
    ProficiencyTier.UNTRAINED,
    ProficiencyTier.ADEPT,
    ProficiencyTier.VERSED,
    ProficiencyTier.MASTER,
)


class HitTier(enum.IntEnum):
    """Outcome buckets; the value is the minimum net successes for the tier."""

    GRAZE = 0
    NORMAL = 1
    SOLID = 2
    CRITICAL = 3


class DurabilityState(str, enum.Enum):
    INTACT = "intact"
    DAMAGED = "damaged"
    BROKEN = "broken"


class EncumbranceState(str, enum.Enum):
    NORMAL = "normal"
    OVERLOADED = "overloaded"
    IMMOBILIZED = "immobilized"


class CreatureSize(str, enum.Enum):
    TINY = "tiny"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE_1 = "huge-1"
    HUGE_2 = "huge-2"
    HUGE_3 = "huge-3"
    COLOSSAL_1 = "colossal-1"
    COLOSSAL_2 = "colossal-2"
    COLOSSAL_3 = "colossal-3"
