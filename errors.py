"""
SKILL CHECK ERRORS
------------------
Every condition that aborts a skill check resolution. Each carries a stable
`code` and the quantities the player needs to see.
"""

from typing import Any, Dict, Optional


class SkillCheckError(Exception):
    code = "skill_check_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        return {}


class ActorNotFound(SkillCheckError):
    code = "actor_not_found"

    def __init__(self, actor_id: str):
        super().__init__(f"Character for roll not found: {actor_id}")
        self.actor_id = actor_id

    def details(self) -> Dict[str, Any]:
        return {"actor_id": self.actor_id}


class SkillNotFound(SkillCheckError):
    code = "skill_not_found"

    def __init__(self, actor_id: str, skill_name: str, suggestion: Optional[str] = None):
        message = f"Skill not found: {skill_name}"
        if suggestion:
            message += f" (did you mean '{suggestion}'?)"
        super().__init__(message)
        self.actor_id = actor_id
        self.skill_name = skill_name
        self.suggestion = suggestion

    def details(self) -> Dict[str, Any]:
        return {"actor_id": self.actor_id, "skill": self.skill_name, "suggestion": self.suggestion}


class NoSkillsAvailable(SkillCheckError):
    code = "no_skills"

    def __init__(self, actor_id: str):
        super().__init__("Your character doesn't have any skills.")
        self.actor_id = actor_id

    def details(self) -> Dict[str, Any]:
        return {"actor_id": self.actor_id}


class InsufficientLuck(SkillCheckError):
    code = "insufficient_luck"

    def __init__(self, actor_id: str, current: int, requested: int):
        super().__init__(f"Not enough Luck: requested {requested}, only {current} left.")
        self.actor_id = actor_id
        self.current = current
        self.requested = requested

    def details(self) -> Dict[str, Any]:
        return {"actor_id": self.actor_id, "current_luck": self.current, "requested_luck": self.requested}


class RollPrimitiveFailure(SkillCheckError):
    code = "roll_failed"

    def __init__(self, skill_name: str, cause: BaseException):
        super().__init__(f"Error during roll for {skill_name}: {cause}")
        self.skill_name = skill_name

    def details(self) -> Dict[str, Any]:
        return {"skill": self.skill_name}


class ActorWriteFailure(SkillCheckError):
    code = "actor_write_failed"

    def __init__(self, actor_id: str, attempted_value: int):
        super().__init__(f"Could not update Luck for {actor_id}; roll discarded.")
        self.actor_id = actor_id
        self.attempted_value = attempted_value

    def details(self) -> Dict[str, Any]:
        return {"actor_id": self.actor_id, "attempted_luck": self.attempted_value}


class ResolutionError(SkillCheckError):
    """Anything unexpected (malformed actor data and the like)."""

    code = "resolution_error"
