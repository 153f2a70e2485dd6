"""
PROMPT COMPOSER
---------------
Builds the skill test a GM posts to chat: the SkillCheck itself plus the
roll button label and flags the chat card carries.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from errors import NoSkillsAvailable, SkillNotFound
from skill_resolution import SkillCheck, suggest_skill

logger = logging.getLogger("prompt_protocol.prompts")

DEFAULT_DV = 15


@dataclass(frozen=True)
class SkillPrompt:
    check: SkillCheck
    label: str

    def flags(self) -> Dict[str, Any]:
        return {
            "skill": self.check.skill_name,
            "dv": self.check.difficulty_value,
            "flavor": self.check.flavor_text,
            "actor_id": self.check.actor_id,
        }


def available_skills(store, actor_id: str) -> List[str]:
    store.require_actor(actor_id)
    return sorted(store.skill_names(actor_id))


def prompt_label(check: SkillCheck) -> str:
    label = f"🎲 Test: {check.skill_name}"
    if not check.hide_difficulty:
        label += f" (DV {check.difficulty_value})"
    if check.flavor_text:
        label += f" — {check.flavor_text}"
    return label + " — Click to roll"


def compose_prompt(store, actor_id: str, skill_name: str, difficulty_value: int = DEFAULT_DV,
                   flavor_text: str = "", hide_difficulty: bool = False) -> SkillPrompt:
    skills = available_skills(store, actor_id)
    if not skills:
        logger.warning(f"{actor_id} has no skills to test")
        raise NoSkillsAvailable(actor_id)
    skill = store.find_skill(actor_id, skill_name)
    if skill is None:
        raise SkillNotFound(actor_id, skill_name, suggest_skill(skill_name, skills))

    check = SkillCheck(
        actor_id=actor_id,
        skill_name=skill.name,
        difficulty_value=int(difficulty_value),
        attribute_key=skill.stat,
        attribute_value=store.attribute_value(actor_id, skill.stat),
        skill_rank=skill.level,
        flavor_text=(flavor_text or "").strip(),
        hide_difficulty=hide_difficulty,
    )
    return SkillPrompt(check=check, label=prompt_label(check))
