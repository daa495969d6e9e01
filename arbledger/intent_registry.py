# arbledger/intent_registry.py
import dataclasses
import logging
from typing import Dict, List, Optional

from .errors import InsufficientDeposit, NotFound, PreconditionFailed, Unauthorized
from .ids import INTENTS, MonotonicIdAllocator
from .models import Intent, IntentStatus
from .pricing import Number, parse_amount
from .user_index import UserIndex

class IntentRegistry:
    """
    Owns intent records and their lifecycle (Active <-> Paused -> Executed).
    Every mutation is ownership-checked. Intents are never deleted.

    With strict_lifecycle=False pause/resume skip the status check, so an
    Executed intent can be flipped back to Paused or Active.
    """
    def __init__(self, ids: MonotonicIdAllocator, min_deposit: int, logger: logging.Logger, strict_lifecycle: bool = True):
        self.ids = ids
        self.min_deposit = min_deposit
        self.logger = logger
        self.strict_lifecycle = strict_lifecycle
        self.intents: Dict[str, Intent] = {}
        self.by_user = UserIndex("user_intents")

    def create(self, owner: str, token_pair: str, threshold: Number, attached_value: int, created_at: int) -> str:
        if attached_value < self.min_deposit:
            raise InsufficientDeposit(self.min_deposit, attached_value)
        min_threshold = parse_amount(threshold, "min_profit_threshold")

        # Validation is over, nothing below can fail.
        intent_id = self.ids.next(INTENTS)
        self.intents[intent_id] = Intent(
            id=intent_id,
            owner=owner,
            token_pair=token_pair,
            min_profit_threshold=min_threshold,
            status=IntentStatus.ACTIVE,
            created_at=created_at,
        )
        self.by_user.append(owner, intent_id)

        self.logger.info(f"📝 Created intent {intent_id} for user {owner} | {token_pair} >= {min_threshold}%")
        return intent_id

    def pause(self, intent_id: str, caller: str):
        intent = self._owned(intent_id, caller, "pause")
        self._guard_terminal(intent, "pause")
        intent.status = IntentStatus.PAUSED
        self.logger.info(f"⏸️ Paused intent {intent_id}")

    def resume(self, intent_id: str, caller: str):
        intent = self._owned(intent_id, caller, "resume")
        self._guard_terminal(intent, "resume")
        intent.status = IntentStatus.ACTIVE
        self.logger.info(f"▶️ Resumed intent {intent_id}")

    def require_executable(self, intent_id: str, caller: str) -> Intent:
        """Returns the intent if `caller` owns it and it is Active."""
        intent = self._owned(intent_id, caller, "execute")
        if intent.status is not IntentStatus.ACTIVE:
            raise PreconditionFailed(f"Intent must be active (intent {intent_id} is {intent.status.value})", record_id=intent_id)
        return intent

    def mark_executed(self, intent_id: str):
        self.intents[intent_id].status = IntentStatus.EXECUTED

    def get(self, intent_id: str) -> Optional[Intent]:
        intent = self.intents.get(intent_id)
        return dataclasses.replace(intent) if intent else None

    def list_for(self, user: str) -> List[Intent]:
        """Intents of `user` in creation order."""
        return [dataclasses.replace(self.intents[i]) for i in self.by_user.ids_for(user) if i in self.intents]

    def _owned(self, intent_id: str, caller: str, action: str) -> Intent:
        intent = self.intents.get(intent_id)
        if intent is None:
            raise NotFound("Intent", intent_id)
        if intent.owner != caller:
            raise Unauthorized(action, intent_id, caller)
        return intent

    def _guard_terminal(self, intent: Intent, action: str):
        if self.strict_lifecycle and intent.status is IntentStatus.EXECUTED:
            raise PreconditionFailed(f"Cannot {action} intent {intent.id}: already executed", record_id=intent.id)
