"""
LUCK SPEND CONTROLLER
---------------------
Settles the Luck a roll consumed against the actor's balance.

- requested > balance  -> InsufficientLuck, nothing written
- requested > 0        -> balance decremented once, floored at 0
- writes for the same actor are serialized (one asyncio.Lock per actor)
"""

import asyncio
import logging
from typing import Dict, Optional, Protocol

from errors import ActorWriteFailure, InsufficientLuck

logger = logging.getLogger("prompt_protocol.luck")


class LuckLedger(Protocol):
    def luck_balance(self, actor_id: str) -> int:
        ...

    async def set_luck_balance(self, actor_id: str, new_value: int, expected: Optional[int] = None) -> bool:
        ...


def check_luck(actor_id: str, current: int, requested: int) -> None:
    if requested < 0:
        raise ValueError(f"Luck spent cannot be negative: {requested}")
    if requested > current:
        logger.warning(f"{actor_id} tried to spend {requested} Luck with only {current} left")
        raise InsufficientLuck(actor_id, current, requested)


class LuckSpendController:
    def __init__(self, store: LuckLedger):
        self.store = store
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock_for(self, actor_id: str) -> asyncio.Lock:
        lock = self._locks.get(actor_id)
        if lock is None:
            lock = self._locks[actor_id] = asyncio.Lock()
        return lock

    def precheck(self, actor_id: str, requested: int) -> int:
        """Validates a request without writing; returns the current balance."""
        current = self.store.luck_balance(actor_id)
        check_luck(actor_id, current, requested)
        return current

    async def spend(self, actor_id: str, requested: int) -> int:
        """Returns the Luck actually spent."""
        if requested == 0:
            return 0
        async with self.lock_for(actor_id):
            current = self.store.luck_balance(actor_id)
            check_luck(actor_id, current, requested)
            new_value = max(current - requested, 0)
            if not await self.store.set_luck_balance(actor_id, new_value, expected=current):
                logger.error(f"Luck write for {actor_id} did not apply ({current} -> {new_value})")
                raise ActorWriteFailure(actor_id, new_value)
        logger.info(f"{actor_id} spent {requested} Luck ({current} -> {new_value})")
        return requested
