"""
Shared fixtures for RingScan tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Tuple

import pytest

from ringscan.services.graph_store import GraphStore

BASE_TIME = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)

# (tx_id, from_id, to_id, amount, hours after BASE_TIME)
EdgeSpec = Tuple[str, str, str, float, float]


def at(hours: float) -> datetime:
    return BASE_TIME + timedelta(hours=hours)


def records_for(edges: Iterable[EdgeSpec]) -> Tuple[List[dict], List[dict]]:
    edges = list(edges)
    account_ids = sorted({e[1] for e in edges} | {e[2] for e in edges})
    accounts = [{"id": account_id, "name": f"Holder {account_id}"} for account_id in account_ids]
    transactions = [
        {"id": tx_id, "from_id": src, "to_id": dst, "amount": amount, "date": at(hours).isoformat()}
        for tx_id, src, dst, amount, hours in edges
    ]
    return accounts, transactions


@pytest.fixture
def build_store():
    """Factory building a GraphStore from edge tuples."""

    def _build(edges: Iterable[EdgeSpec], mode: str = "strict") -> GraphStore:
        accounts, transactions = records_for(edges)
        return GraphStore.from_records(accounts, transactions, mode=mode)

    return _build


@pytest.fixture
def triangle_edges() -> List[EdgeSpec]:
    """A -> B -> C -> A, dates increasing, each hop keeping 85-90% of the last."""
    return [
        ("T1", "A", "B", 100.0, 1),
        ("T2", "B", "C", 90.0, 2),
        ("T3", "C", "A", 85.0, 3),
    ]
