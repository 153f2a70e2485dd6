"""Shared fixtures: a small crew of actors and a die that rolls what it is told."""
from __future__ import annotations

from typing import List, Optional

import pytest

from actor_store import ActorStore, frame
from cyberpunk_red_engine import DrawResult, RollContext

ACTORS = [
    {"Actor_Id": "solo-1", "Name": "Rook", "REF": 8, "DEX": 6, "COOL": 5, "LUCK": 3,
     "Wound_State": "notWounded", "Overrides": "Stealth=+1"},
    {"Actor_Id": "tech-2", "Name": "Patch", "TECH": 7, "LUCK": 0,
     "Wound_State": "seriouslyWounded", "Overrides": ""},
    {"Actor_Id": "medic-3", "Name": "Doc", "TECH": 6, "LUCK": 5,
     "Wound_State": "mortallyWounded", "Overrides": ""},
    {"Actor_Id": "ghost-4", "Name": "Ghost", "REF": 5, "LUCK": 1,
     "Wound_State": "", "Overrides": ""},
]

SKILLS = [
    {"Actor_Id": "solo-1", "Name": "Athletics", "Type": "skill", "Stat": "dex", "Level": 3},
    {"Actor_Id": "solo-1", "Name": "Stealth", "Type": "skill", "Stat": "dex", "Level": 4},
    {"Actor_Id": "solo-1", "Name": "Mantis Blades", "Type": "cyberware", "Stat": "ref", "Level": 0},
    {"Actor_Id": "tech-2", "Name": "Basic Tech", "Type": "skill", "Stat": "tech", "Level": 5},
    {"Actor_Id": "medic-3", "Name": "First Aid", "Type": "skill", "Stat": "tech", "Level": 4},
]


class ScriptedRoll:
    """DieRollPrimitive that returns a fixed draw and records its calls."""

    def __init__(self, value: int = 7, critical: int = 0, natural: Optional[int] = None,
                 error: Optional[Exception] = None, luck_override: Optional[int] = None):
        self.value = value
        self.critical = critical
        self.natural = natural
        self.error = error
        self.luck_override = luck_override
        self.calls: List[tuple] = []

    async def draw(self, attribute_value: int, skill_rank: int, context: RollContext) -> DrawResult:
        self.calls.append((attribute_value, skill_rank, context))
        if self.error is not None:
            raise self.error
        luck = context.luck if self.luck_override is None else self.luck_override
        return DrawResult(value=self.value, luck_consumed=luck,
                          critical_magnitude=self.critical, natural=self.natural)


class FixedRng:
    """Stands in for random.Random; hands out queued faces."""

    def __init__(self, faces: List[int]):
        self.faces = list(faces)

    def randint(self, low: int, high: int) -> int:
        face = self.faces.pop(0)
        assert low <= face <= high
        return face


def make_store() -> ActorStore:
    return ActorStore(frame(ACTORS, "actors.tsv"), frame(SKILLS, "skills.tsv"))


@pytest.fixture
def store():
    s = make_store()
    yield s
    s.close()


@pytest.fixture
def write_tables(tmp_path):
    """Writes ACTORS/SKILLS as TSVs and returns the directory."""
    frame(ACTORS, "actors.tsv").to_csv(tmp_path / "actors.tsv", sep="\t", index=False)
    frame(SKILLS, "skills.tsv").to_csv(tmp_path / "skills.tsv", sep="\t", index=False)
    return tmp_path
