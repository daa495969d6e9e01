# arbledger/profit.py
from typing import Dict

class ProfitAccumulator:
    """
    Running realized profit per user, in integer minor units.
    Totals start at zero and never decrease, losses are not recorded.
    """
    def __init__(self):
        self.totals: Dict[str, int] = {}

    def add(self, user: str, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"Profit accumulator only accepts non-negative amounts, got {amount}")
        total = self.totals.get(user, 0) + amount
        self.totals[user] = total
        return total

    def total_for(self, user: str) -> int:
        return self.totals.get(user, 0)
