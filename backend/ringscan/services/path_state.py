"""
Branch state for the cycle search.
"""

from datetime import datetime
from typing import List, Optional, Set, Tuple

from ringscan.services.graph_store import Transaction


class PathState:
    """
    The path of a single depth-first branch.

    ``push`` and ``pop`` are the only mutators and undo each other exactly, so
    one instance is reused for a whole search instead of copying paths.
    """

    def __init__(self, start: str, max_fee_ratio: float = 0.2):
        self.retain_ratio = 1.0 - max_fee_ratio
        self.start = start
        self.current = start
        self.transactions: List[Transaction] = []
        self.visited: Set[str] = {start}

    def reset(self, start: str) -> None:
        self.start = start
        self.current = start
        self.transactions = []
        self.visited = {start}

    @property
    def depth(self) -> int:
        return len(self.transactions)

    @property
    def last_date(self) -> Optional[datetime]:
        return self.transactions[-1].date if self.transactions else None

    def amount_window(self) -> Optional[Tuple[float, float]]:
        """Open interval the next amount must fall in, or None at depth 0."""
        if not self.transactions:
            return None
        last_amount = self.transactions[-1].amount
        return self.retain_ratio * last_amount, last_amount

    def follows(self, candidate: Transaction) -> bool:
        """True if the candidate is later and smaller, within the fee window, than the last step."""
        window = self.amount_window()
        if window is None:
            return True
        if not self.transactions[-1].date < candidate.date:
            return False
        low, high = window
        return low < candidate.amount < high

    def can_extend(self, candidate: Transaction) -> bool:
        if candidate.from_id != self.current or not self.follows(candidate):
            return False
        if candidate.to_id == self.start:
            # closing needs at least one prior hop; a self-loop is not a ring
            return bool(self.transactions)
        return candidate.to_id not in self.visited

    def push(self, tx: Transaction) -> None:
        self.transactions.append(tx)
        self.visited.add(tx.to_id)
        self.current = tx.to_id

    def pop(self) -> Transaction:
        tx = self.transactions.pop()
        if tx.to_id != self.start:
            self.visited.discard(tx.to_id)
        self.current = tx.from_id
        return tx

    def closed_with(self, tx: Transaction) -> Tuple[Transaction, ...]:
        return tuple(self.transactions) + (tx,)

    def __repr__(self) -> str:
        hops = " -> ".join([self.start] + [t.to_id for t in self.transactions])
        return f"PathState({hops})"
