"""
SKILL CHECK RESOLUTION
----------------------
Resolves one skill check for one actor:

  lookup -> ledger assembly -> draw & luck settlement -> totalling -> verdict

Main pieces:
- SkillCheck: the prompt the GM posted (immutable)
- RollOutcome: everything the chat report needs
- RollResolutionEngine.resolve()

Success is strictly greater than the DV; a tie fails.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Tuple

from rapidfuzz import fuzz, process, utils

from cyberpunk_red_engine import DieRollPrimitive, DrawResult, RollContext
from errors import (
    ActorNotFound,
    ResolutionError,
    RollPrimitiveFailure,
    SkillCheckError,
    SkillNotFound,
)
from luck_controller import LuckSpendController
from modifier_ledger import (
    ModifierEntry,
    ModifierKind,
    ModifierLedger,
    override_bonus,
    parse_wound_state,
    wound_penalty,
)

logger = logging.getLogger("prompt_protocol.resolution")


class CriticalOutcome(Enum):
    NONE = "none"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class SkillCheck:
    actor_id: str
    skill_name: str
    difficulty_value: int
    attribute_key: str = ""
    attribute_value: int = 0
    skill_rank: int = 0
    flavor_text: str = ""
    hide_difficulty: bool = False


@dataclass(frozen=True)
class RollOutcome:
    check: SkillCheck
    actor_name: str
    base_roll: int
    natural_roll: int
    modifier_ledger: Tuple[ModifierEntry, ...]
    total_modifier_value: int
    final_total: int
    difficulty_value: int
    success: bool
    luck_spent: int = 0
    critical_outcome: CriticalOutcome = CriticalOutcome.NONE
    critical_magnitude: int = 0


def classify_critical(magnitude: int) -> CriticalOutcome:
    if magnitude > 0:
        return CriticalOutcome.SUCCESS
    if magnitude < 0:
        return CriticalOutcome.FAILURE
    return CriticalOutcome.NONE


def suggest_skill(name: str, choices: Iterable[str], cutoff: float = 70) -> Optional[str]:
    choices = list(choices)
    if not choices:
        return None
    match = process.extractOne(name, choices, scorer=fuzz.WRatio, processor=utils.default_process, score_cutoff=cutoff)
    return match[0] if match else None


def build_ledger(check: SkillCheck, wound_state: str, overrides: Optional[dict],
                 extra_mods: Iterable[Tuple[str, int]] = ()) -> ModifierLedger:
    ledger = ModifierLedger()
    ledger.append(ModifierEntry(f"Skill Level ({check.skill_name})", check.skill_rank, ModifierKind.RANK))

    penalty = wound_penalty(wound_state)
    if penalty:
        state = parse_wound_state(wound_state)
        ledger.append(ModifierEntry(f"Wound penalty ({state.value})", penalty, ModifierKind.WOUND_PENALTY))

    bonus = override_bonus(overrides, check.skill_name)
    if bonus:
        ledger.append(ModifierEntry(f"Situational bonus ({check.skill_name})", bonus, ModifierKind.SITUATIONAL_BONUS))

    for label, value in extra_mods:
        ledger.append(ModifierEntry(label, value, ModifierKind.OTHER))
    return ledger


class RollResolutionEngine:
    def __init__(self, store, primitive: DieRollPrimitive, luck: Optional[LuckSpendController] = None):
        self.store = store
        self.primitive = primitive
        self.luck = luck or LuckSpendController(store)

    async def resolve(self, check: SkillCheck, context: Optional[RollContext] = None) -> RollOutcome:
        context = context or RollContext()
        try:
            return await self._resolve(check, context)
        except SkillCheckError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error resolving {check.skill_name} for {check.actor_id}")
            raise ResolutionError(f"Unexpected error resolving {check.skill_name}: {e}") from e

    def lookup(self, check: SkillCheck) -> Tuple[str, SkillCheck]:
        """Returns the actor's name and the check with current stat/rank values."""
        actor = self.store.get_actor(check.actor_id)
        if actor is None:
            logger.warning(f"Character for roll not found: {check.actor_id}")
            raise ActorNotFound(check.actor_id)
        skill = self.store.find_skill(check.actor_id, check.skill_name)
        if skill is None:
            suggestion = suggest_skill(check.skill_name, self.store.skill_names(check.actor_id))
            logger.warning(f"Skill not found: {check.skill_name} (actor={check.actor_id}, suggestion={suggestion})")
            raise SkillNotFound(check.actor_id, check.skill_name, suggestion)
        resolved = replace(
            check,
            attribute_key=skill.stat,
            attribute_value=self.store.attribute_value(check.actor_id, skill.stat),
            skill_rank=skill.level,
        )
        return actor.name, resolved

    async def draw(self, check: SkillCheck, context: RollContext) -> DrawResult:
        try:
            result = await self.primitive.draw(check.attribute_value, check.skill_rank, context)
        except Exception as e:
            logger.exception(f"Error during roll for {check.skill_name}")
            raise RollPrimitiveFailure(check.skill_name, e) from e
        if result.luck_consumed < 0:
            raise RollPrimitiveFailure(
                check.skill_name, ValueError(f"negative luck consumed: {result.luck_consumed}")
            )
        return result

    async def _resolve(self, check: SkillCheck, context: RollContext) -> RollOutcome:
        actor_name, check = self.lookup(check)

        ledger = build_ledger(
            check,
            self.store.wound_state(check.actor_id),
            self.store.overrides(check.actor_id),
            context.extra_mods,
        )

        if context.luck:
            self.luck.precheck(check.actor_id, context.luck)
        draw = await self.draw(check, context)
        luck_spent = await self.luck.spend(check.actor_id, draw.luck_consumed)
        if luck_spent:
            ledger.append(ModifierEntry("Luck", luck_spent, ModifierKind.LUCK))

        total_mods = ledger.total()
        final_total = draw.value + total_mods
        success = final_total > check.difficulty_value

        outcome = RollOutcome(
            check=check,
            actor_name=actor_name,
            base_roll=draw.value,
            natural_roll=draw.natural_roll,
            modifier_ledger=ledger.snapshot(),
            total_modifier_value=total_mods,
            final_total=final_total,
            difficulty_value=check.difficulty_value,
            success=success,
            luck_spent=luck_spent,
            critical_outcome=classify_critical(draw.critical_magnitude),
            critical_magnitude=draw.critical_magnitude,
        )
        logger.info(
            f"{actor_name} rolled {check.skill_name}: {draw.value} {total_mods:+d} = {final_total} "
            f"vs DV {check.difficulty_value} -> {'success' if success else 'failure'}"
        )
        return outcome
