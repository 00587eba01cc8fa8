"""
Tests for PathState.
"""

from datetime import datetime, timedelta, timezone

from ringscan.services.graph_store import Transaction
from ringscan.services.path_state import PathState

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def tx(tx_id, src, dst, amount, hours):
    return Transaction(tx_id, src, dst, amount, T0 + timedelta(hours=hours))


def snapshot(path: PathState):
    return (path.start, path.current, list(path.transactions), set(path.visited), path.last_date)


def test_push_pop_are_inverse():
    path = PathState("A")
    before = snapshot(path)
    first = tx("T1", "A", "B", 100.0, 1)
    path.push(first)
    after_first = snapshot(path)

    path.push(tx("T2", "B", "C", 90.0, 2))
    assert path.depth == 2
    assert path.current == "C"
    assert path.visited == {"A", "B", "C"}

    path.pop()
    assert snapshot(path) == after_first
    assert path.pop() is first
    assert snapshot(path) == before


def test_any_transaction_can_start_a_path():
    path = PathState("A")
    assert path.amount_window() is None
    assert path.can_extend(tx("T1", "A", "B", 5.0, 0))
    assert path.can_extend(tx("T2", "A", "B", 5_000_000.0, -100))


def test_transaction_must_leave_current_account():
    path = PathState("A")
    assert not path.can_extend(tx("T1", "B", "C", 5.0, 0))


def test_self_loop_cannot_close_at_depth_zero():
    path = PathState("A")
    assert not path.can_extend(tx("T1", "A", "A", 5.0, 0))


def test_closing_allowed_after_one_hop():
    path = PathState("A")
    path.push(tx("T1", "A", "B", 100.0, 1))
    assert path.can_extend(tx("T2", "B", "A", 95.0, 2))


def test_visited_account_rejected():
    path = PathState("A")
    path.push(tx("T1", "A", "B", 100.0, 1))
    path.push(tx("T2", "B", "C", 95.0, 2))
    assert not path.can_extend(tx("T3", "C", "B", 90.0, 3))
    assert path.can_extend(tx("T4", "C", "D", 90.0, 3))


def test_date_must_strictly_increase():
    path = PathState("A")
    path.push(tx("T1", "A", "B", 100.0, 5))
    assert not path.can_extend(tx("T2", "B", "C", 95.0, 5))
    assert not path.can_extend(tx("T3", "B", "C", 95.0, 4))
    assert path.can_extend(tx("T4", "B", "C", 95.0, 6))


def test_amount_window_is_open_on_both_ends():
    path = PathState("A", max_fee_ratio=0.2)
    path.push(tx("T1", "A", "B", 100.0, 1))
    assert path.amount_window() == (0.8 * 100.0, 100.0)
    assert not path.can_extend(tx("T2", "B", "C", 100.0, 2))
    assert not path.can_extend(tx("T3", "B", "C", 80.0, 2))
    assert not path.can_extend(tx("T4", "B", "C", 120.0, 2))
    assert path.can_extend(tx("T5", "B", "C", 80.0 + 1e-9, 2))
    assert path.can_extend(tx("T6", "B", "C", 99.99, 2))


def test_fee_ratio_widens_window():
    path = PathState("A", max_fee_ratio=0.5)
    path.push(tx("T1", "A", "B", 100.0, 1))
    assert path.can_extend(tx("T2", "B", "C", 60.0, 2))
    assert not path.can_extend(tx("T3", "B", "C", 50.0, 2))


def test_reset_reuses_state():
    path = PathState("A")
    path.push(tx("T1", "A", "B", 100.0, 1))
    path.pop()
    path.reset("Z")
    assert snapshot(path) == ("Z", "Z", [], {"Z"}, None)


def test_closed_with_does_not_mutate():
    path = PathState("A")
    path.push(tx("T1", "A", "B", 100.0, 1))
    closing = tx("T2", "B", "A", 95.0, 2)
    closed = path.closed_with(closing)
    assert [t.id for t in closed] == ["T1", "T2"]
    assert path.depth == 1
