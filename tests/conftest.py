# tests/conftest.py

import pytest

from ChaosTable import metrics
from ChaosTable.rules.dice import DiceRNG, ScriptedRandomSource
from ChaosTable.schemas import CharacterRecord, SkillRecord


def pytest_runtest_setup(item):
    # Fresh counters for every test, hypothesis ones included
    metrics.reset_counters()


@pytest.fixture
def seeded_rng():
    return DiceRNG(seed=42)


@pytest.fixture
def scripted():
    """Factory for a random source that replays the given draws."""

    def _make(*values: int) -> ScriptedRandomSource:
        return ScriptedRandomSource(values)

    return _make


@pytest.fixture
def fighter() -> CharacterRecord:
    return CharacterRecord(
        name="Kessa",
        level=6,
        attributes={
            "agility": 3,
            "body": 2,
            "influence": 1,
            "mind": 1,
            "essence": 0,
            "instinct": 2,
        },
        skills={
            "blades": SkillRecord(
                key_attribute="agility",
                proficiency="versed",
                uses={
                    "heavy swing": {"name": "heavy swing", "attribute": "body", "dice_modifier": 1},
                },
            ),
            "athletics": SkillRecord(key_attribute="body", proficiency="adept"),
        },
        signature_skill="blades",
    )
