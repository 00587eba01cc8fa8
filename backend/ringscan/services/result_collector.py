"""
Result collection and deduplication for the cycle search.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Sequence, Tuple

from ringscan.services.graph_store import Transaction
from ringscan.utils.hasher import cycle_fingerprint


def canonical_rotation(transactions: Sequence[Transaction]) -> Tuple[Transaction, ...]:
    """Rotate a closed path so it begins with the transaction leaving the smallest account id."""
    start_index = min(range(len(transactions)), key=lambda i: transactions[i].from_id)
    return tuple(transactions[start_index:]) + tuple(transactions[:start_index])


@dataclass(frozen=True)
class Cycle:
    """
    A closed ring of transactions.

    ``transactions`` is kept in traversal order, which is also date order.
    ``key`` is the transaction-id sequence of the canonical rotation.
    """

    transactions: Tuple[Transaction, ...]
    canonical_start: str
    key: Tuple[str, ...]

    @classmethod
    def from_path(cls, transactions: Sequence[Transaction]) -> "Cycle":
        rotated = canonical_rotation(transactions)
        return cls(
            transactions=tuple(transactions),
            canonical_start=rotated[0].from_id,
            key=tuple(t.id for t in rotated),
        )

    @property
    def hops(self) -> int:
        return len(self.transactions)

    @property
    def accounts(self) -> List[str]:
        return [t.from_id for t in self.transactions]

    @property
    def total_amount(self) -> float:
        return sum(t.amount for t in self.transactions)

    @property
    def fingerprint(self) -> str:
        return cycle_fingerprint(self.key)

    def edges(self) -> List[Dict[str, Any]]:
        return [t.as_edge() for t in self.transactions]


class ResultCollector:
    """Thread-safe set of distinct cycles found during one scan."""

    def __init__(self):
        self._lock = threading.Lock()
        self._cycles: Dict[Tuple[str, ...], Cycle] = {}

    def offer(self, transactions: Sequence[Transaction]) -> bool:
        """Record a closed path. Returns False if the same cycle was already recorded."""
        cycle = Cycle.from_path(transactions)
        with self._lock:
            if cycle.key in self._cycles:
                return False
            self._cycles[cycle.key] = cycle
            return True

    def results(self) -> FrozenSet[Cycle]:
        with self._lock:
            return frozenset(self._cycles.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._cycles)
