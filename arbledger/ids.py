# arbledger/ids.py
from typing import Dict, Iterable

INTENTS = "intents"
EXECUTIONS = "executions"

class MonotonicIdAllocator:
    """
    Issues ever-increasing identifiers, rendered as strings, per counter space.
    Every space starts at 1 and never reuses a value.
    """
    def __init__(self, spaces: Iterable[str] = (INTENTS, EXECUTIONS)):
        self._next: Dict[str, int] = {space: 1 for space in spaces}

    def next(self, space: str) -> str:
        """Returns the current value of `space` as a string, then increments it."""
        current = self._next[space]
        self._next[space] = current + 1
        return str(current)

    def peek(self, space: str) -> int:
        return self._next[space]

    def issued(self, space: str) -> int:
        """Number of identifiers handed out so far in `space`."""
        return self._next[space] - 1

    def restore(self, space: str, next_value: int):
        """
        Re-seeds a counter from persisted state.
        Refuses to move a counter backwards, which would reissue ids.
        """
        if next_value < self._next[space]:
            raise ValueError(f"Counter '{space}' cannot move back from {self._next[space]} to {next_value}")
        self._next[space] = next_value
