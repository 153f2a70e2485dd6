"""
MODIFIER LEDGER
---------------
Ordered record of every numeric contribution to a skill check total, plus the
two pure lookups that feed it:

- wound_penalty(): wound state -> penalty (seriously -2, mortally -4)
- override_bonus(): actor overrides + skill name -> situational bonus

Usage:
  ledger = ModifierLedger()
  ledger.append(ModifierEntry("Skill Level (Stealth)", 4, ModifierKind.RANK))
  total = ledger.total()
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union


class ModifierKind(Enum):
    RANK = "rank"
    SITUATIONAL_BONUS = "situational-bonus"
    WOUND_PENALTY = "wound-penalty"
    LUCK = "luck"
    OTHER = "other"


@dataclass(frozen=True)
class ModifierEntry:
    label: str
    value: int
    kind: ModifierKind = ModifierKind.OTHER

    def __post_init__(self):
        # bool is an int subclass; a True/False modifier is always a bug upstream
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Modifier '{self.label}' must be an integer, got {self.value!r}")

    def signed(self) -> str:
        return f"{self.value:+d}"


class ModifierLedger:
    """Append-only list of modifier entries; the sum ignores order."""

    def __init__(self, entries: Optional[List[ModifierEntry]] = None):
        self._entries: List[ModifierEntry] = []
        for entry in entries or []:
            self.append(entry)

    def append(self, entry: ModifierEntry) -> None:
        self._entries.append(entry)

    def total(self) -> int:
        return sum(entry.value for entry in self._entries)

    def snapshot(self) -> Tuple[ModifierEntry, ...]:
        return tuple(self._entries)

    def of_kind(self, kind: ModifierKind) -> List[ModifierEntry]:
        return [e for e in self._entries if e.kind is kind]

    def __iter__(self) -> Iterator[ModifierEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


# --- WOUND STATES ---
class WoundState(Enum):
    NOT_WOUNDED = "notWounded"
    LIGHTLY_WOUNDED = "lightlyWounded"
    SERIOUSLY_WOUNDED = "seriouslyWounded"
    MORTALLY_WOUNDED = "mortallyWounded"


WOUND_PENALTIES: Dict[WoundState, int] = {
    WoundState.SERIOUSLY_WOUNDED: -2,
    WoundState.MORTALLY_WOUNDED: -4,
}

_WOUND_LOOKUP = {re.sub(r"[\s_\-]", "", s.value).lower(): s for s in WoundState}


def parse_wound_state(raw: Union[str, WoundState, None]) -> Optional[WoundState]:
    """Accepts 'seriouslyWounded', 'seriously wounded', 'SERIOUSLY_WOUNDED'..."""
    if isinstance(raw, WoundState):
        return raw
    if not raw:
        return None
    return _WOUND_LOOKUP.get(re.sub(r"[\s_\-]", "", str(raw)).lower())


def wound_penalty(state: Union[str, WoundState, None]) -> int:
    # Unknown or future states carry no penalty
    parsed = parse_wound_state(state)
    if parsed is None:
        return 0
    return WOUND_PENALTIES.get(parsed, 0)


# --- SITUATIONAL OVERRIDES ---
def override_bonus(overrides: Optional[Mapping[str, int]], skill_name: str) -> int:
    if not overrides:
        return 0
    return int(overrides.get(skill_name.casefold(), 0))
