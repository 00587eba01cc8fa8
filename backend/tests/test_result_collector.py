"""
Tests for ResultCollector and Cycle.
"""

import threading
from datetime import datetime, timedelta, timezone

from ringscan.services.graph_store import Transaction
from ringscan.services.result_collector import Cycle, ResultCollector, canonical_rotation
from ringscan.utils.hasher import cycle_fingerprint

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

RING = [
    Transaction("T1", "C", "A", 100.0, T0 + timedelta(hours=1)),
    Transaction("T2", "A", "B", 90.0, T0 + timedelta(hours=2)),
    Transaction("T3", "B", "C", 80.0, T0 + timedelta(hours=3)),
]


def test_canonical_rotation_starts_at_smallest_account():
    rotated = canonical_rotation(RING)
    assert [t.id for t in rotated] == ["T2", "T3", "T1"]


def test_cycle_keeps_traversal_order():
    cycle = Cycle.from_path(RING)
    assert [t.id for t in cycle.transactions] == ["T1", "T2", "T3"]
    assert cycle.canonical_start == "A"
    assert cycle.key == ("T2", "T3", "T1")
    assert cycle.accounts == ["C", "A", "B"]
    assert cycle.hops == 3
    assert cycle.total_amount == 270.0
    assert cycle.fingerprint == cycle_fingerprint(("T2", "T3", "T1"))


def test_cycle_edges():
    edges = Cycle.from_path(RING).edges()
    assert edges[0] == {
        "from_id": "C",
        "to_id": "A",
        "amount": 100.0,
        "date": (T0 + timedelta(hours=1)).isoformat(),
        "tx_id": "T1",
    }


def test_rotations_are_deduplicated():
    collector = ResultCollector()
    assert collector.offer(RING) is True
    assert collector.offer(RING[1:] + RING[:1]) is False
    assert collector.offer(RING[2:] + RING[:2]) is False
    assert len(collector) == 1
    (cycle,) = collector.results()
    assert cycle.key == ("T2", "T3", "T1")


def test_parallel_transactions_are_distinct_cycles():
    other = [RING[0], RING[1], Transaction("T3b", "B", "C", 81.0, T0 + timedelta(hours=4))]
    collector = ResultCollector()
    collector.offer(RING)
    collector.offer(other)
    assert len(collector) == 2


def test_concurrent_offers():
    collector = ResultCollector()
    accepted = []
    lock = threading.Lock()

    def worker(rotation):
        for _ in range(200):
            if collector.offer(rotation):
                with lock:
                    accepted.append(rotation)

    threads = [
        threading.Thread(target=worker, args=(RING[i:] + RING[:i],)) for i in range(3)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(collector) == 1
    assert len(accepted) == 1


def test_empty_collector():
    assert ResultCollector().results() == frozenset()
