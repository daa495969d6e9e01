# arbledger/user_index.py
from typing import Dict, List

class UserIndex:
    """
    Per-user, append-only ordered list of record ids.
    O(1) append, O(n) enumeration in insertion order. No deletion path exists.
    """
    def __init__(self, namespace: str):
        # Top-level snapshot key of this index, distinct per collection.
        self.namespace = namespace
        self._lists: Dict[str, List[str]] = {}

    def append(self, user: str, record_id: str):
        self._lists.setdefault(user, []).append(record_id)

    def ids_for(self, user: str) -> List[str]:
        return list(self._lists.get(user, ()))

    def get(self, user: str, position: int) -> str:
        return self._lists[user][position]

    def count(self, user: str) -> int:
        return len(self._lists.get(user, ()))

    def to_dict(self) -> Dict[str, List[str]]:
        return {user: list(ids) for user, ids in self._lists.items()}

    def load(self, data: Dict[str, List[str]]):
        self._lists = {user: list(ids) for user, ids in data.items()}
