# arbledger/execution_ledger.py
from typing import Dict, List, Optional

from .errors import PreconditionFailed
from .models import Execution
from .user_index import UserIndex

class ExecutionLedger:
    """
    Append-only store of execution records with a per-owner index.
    A record is written once and never mutated or removed.
    """
    def __init__(self):
        self.executions: Dict[str, Execution] = {}
        self.by_user = UserIndex("user_executions")

    def record(self, execution: Execution):
        if execution.id in self.executions:
            raise PreconditionFailed(f"Execution {execution.id} already recorded", record_id=execution.id)
        self.executions[execution.id] = execution
        self.by_user.append(execution.owner, execution.id)

    def get(self, execution_id: str) -> Optional[Execution]:
        return self.executions.get(execution_id)

    def history_for(self, user: str) -> List[Execution]:
        """Executions of `user` in the order they were recorded."""
        return [self.executions[i] for i in self.by_user.ids_for(user) if i in self.executions]

    def __contains__(self, execution_id: str) -> bool:
        return execution_id in self.executions

    def __len__(self) -> int:
        return len(self.executions)
