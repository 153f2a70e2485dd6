"""
CYBERPUNK RED ROLL ENGINE
-------------------------
All skill check draws in the system must route through this file.
Simulated rolls or randoms outside this script are prohibited.

Provided:
- roll_d10(): core resolution die
- DieRollPrimitive: the capability the resolution engine depends on
- D10SkillRoll: the one conforming implementation (Cyberpunk RED rules)

Cyberpunk RED criticals:
  natural 10 -> roll another d10 and ADD it   (critical success)
  natural 1  -> roll another d10 and SUBTRACT it (critical failure)

The reported value is STAT + d10 (+/- the critical die). It never includes
the skill level or Luck; those are ledger entries of the resolution engine.
"""

import random
from dataclasses import dataclass, field
from typing import Optional, Protocol, Tuple


def roll_d10(rng: Optional[random.Random] = None) -> int:
    """Rolls 1d10. Used for skill checks, initiative, and task resolution."""
    return (rng or random).randint(1, 10)


@dataclass(frozen=True)
class RollContext:
    """What the roll dialog asked for on top of the prompt."""
    luck: int = 0
    extra_mods: Tuple[Tuple[str, int], ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.luck < 0:
            raise ValueError(f"Luck to spend cannot be negative: {self.luck}")


@dataclass(frozen=True)
class DrawResult:
    value: int
    luck_consumed: int = 0
    critical_magnitude: int = 0
    natural: Optional[int] = None

    @property
    def natural_roll(self) -> int:
        return self.natural if self.natural is not None else self.value - self.critical_magnitude


class DieRollPrimitive(Protocol):
    async def draw(self, attribute_value: int, skill_rank: int, context: RollContext) -> DrawResult:
        ...


class D10SkillRoll:
    """STAT + 1d10 with exploding/imploding criticals."""

    def __init__(self, faces: int = 10, rng: Optional[random.Random] = None):
        if faces < 2:
            raise ValueError(f"A die needs at least 2 faces, got {faces}")
        self.faces = faces
        self.rng = rng or random.Random()

    def _roll(self) -> int:
        if self.faces == 10:
            return roll_d10(self.rng)
        return self.rng.randint(1, self.faces)

    async def draw(self, attribute_value: int, skill_rank: int, context: RollContext) -> DrawResult:
        natural = self._roll()
        critical = 0
        if natural == self.faces:
            critical = self._roll()
        elif natural == 1:
            critical = -self._roll()
        return DrawResult(
            value=attribute_value + natural + critical,
            luck_consumed=context.luck,
            critical_magnitude=critical,
            natural=natural,
        )


def build_primitive(name: str, faces: int = 10, seed: Optional[int] = None) -> DieRollPrimitive:
    """Selects the die primitive at configuration time."""
    if name.lower() in ("d10", "cpr", "cyberpunk-red"):
        return D10SkillRoll(faces=faces, rng=random.Random(seed))
    raise ValueError(f"Unknown die primitive: {name}")
