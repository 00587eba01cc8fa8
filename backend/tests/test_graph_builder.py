"""
Tests for CSV validation and DataFrame ingestion.
"""

import pandas as pd
import pytest

from ringscan.core.exceptions import DanglingReferenceError, InvalidTransactionError
from ringscan.services.graph_builder import build_graph, get_node_stats, read_csv_bytes
from ringscan.utils.csv_validator import normalize_columns, validate_accounts_csv, validate_csv
from ringscan.utils.synthetic import generate_haystack, inject_needle


@pytest.fixture
def ring_df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id": ["TX001", "TX002", "TX003"],
            "from_id": ["ACC_001", "ACC_002", "ACC_003"],
            "to_id": ["ACC_002", "ACC_003", "ACC_001"],
            "amount": [1000.0, 900.0, 850.0],
            "date": ["2024-01-01T10:00:00", "2024-01-01T11:00:00", "2024-01-01T12:00:00"],
        }
    )


def test_validate_valid(ring_df):
    result = validate_csv(ring_df)
    assert result["valid"]
    assert result["row_count"] == 3
    assert result["account_count"] == 3
    assert result["errors"] == []


def test_validate_missing_columns():
    result = validate_csv(pd.DataFrame({"id": ["TX001"], "from_id": ["A"]}))
    assert not result["valid"]
    assert "Missing required columns" in result["errors"][0]


def test_validate_empty():
    result = validate_csv(pd.DataFrame(columns=["id", "from_id", "to_id", "amount", "date"]))
    assert not result["valid"]
    assert "empty" in result["errors"][0]


def test_validate_bad_values(ring_df):
    ring_df.loc[0, "amount"] = -10.0
    ring_df.loc[1, "date"] = "yesterday-ish"
    ring_df.loc[2, "id"] = "TX001"
    errors = " ".join(validate_csv(ring_df)["errors"])
    assert "non-positive" in errors
    assert "could not be parsed" in errors
    assert "duplicate transaction id" in errors


def test_epoch_dates_are_rejected():
    contents = b"id,from_id,to_id,amount,date\nT1,A,B,100,1704067200\nT2,B,A,90,1704067260\n"
    df = read_csv_bytes(contents)
    result = validate_csv(df)
    assert not result["valid"]
    assert "2 numeric values" in " ".join(result["errors"])
    with pytest.raises(InvalidTransactionError):
        build_graph(df)
    assert build_graph(df, mode="lenient").transaction_count == 0


def test_validate_sub_microsecond_dates(ring_df):
    ring_df.loc[0, "date"] = "2024-01-01T10:00:00.000000001"
    result = validate_csv(ring_df)
    assert not result["valid"]
    assert "sub-microsecond" in " ".join(result["errors"])


def test_validate_self_loop_warning(ring_df):
    ring_df.loc[0, "to_id"] = "ACC_001"
    result = validate_csv(ring_df)
    assert result["valid"]
    assert result["warnings"]


def test_legacy_column_names(ring_df):
    legacy = ring_df.rename(
        columns={"id": "transaction_id", "from_id": "sender_id", "to_id": "receiver_id", "date": "timestamp"}
    )
    normalized = normalize_columns(legacy)
    assert list(normalized.columns) == ["id", "from_id", "to_id", "amount", "date"]
    store = build_graph(legacy)
    assert store.transaction_count == 3


def test_accounts_derived_from_transactions(ring_df):
    store = build_graph(ring_df)
    assert store.account_ids() == ["ACC_001", "ACC_002", "ACC_003"]
    assert store.account("ACC_001").name is None


def test_accounts_frame(ring_df):
    accounts = pd.DataFrame(
        {
            "id": ["ACC_001", "ACC_002", "ACC_003"],
            "name": ["Ann", "Bob", None],
            "email": ["ann@example.com", None, None],
        }
    )
    store = build_graph(ring_df, accounts)
    assert store.account("ACC_001").name == "Ann"
    assert store.account("ACC_002").email is None
    assert store.account("ACC_003").name is None


def test_accounts_frame_missing_endpoint(ring_df):
    accounts = pd.DataFrame({"id": ["ACC_001", "ACC_002"]})
    with pytest.raises(DanglingReferenceError):
        build_graph(ring_df, accounts)
    lenient = build_graph(ring_df, accounts, mode="lenient")
    assert lenient.transaction_count == 1


def test_bad_row_strict_and_lenient(ring_df):
    ring_df.loc[1, "amount"] = 0.0
    with pytest.raises(InvalidTransactionError):
        build_graph(ring_df)
    assert build_graph(ring_df, mode="lenient").transaction_count == 2


def test_validate_accounts_csv():
    assert validate_accounts_csv(pd.DataFrame({"id": ["A", "B"]}))["valid"]
    assert not validate_accounts_csv(pd.DataFrame({"name": ["A"]}))["valid"]
    repeated = validate_accounts_csv(pd.DataFrame({"id": ["A", "A"]}))
    assert repeated["valid"]
    assert repeated["warnings"]


def test_csv_round_trip_keeps_test_marker():
    accounts, transactions = generate_haystack(20, 30, seed=3)
    accounts, transactions, needle_ids = inject_needle(accounts, transactions, 3)
    contents = pd.DataFrame(transactions).to_csv(index=False).encode("utf-8")
    df = read_csv_bytes(contents)
    store = build_graph(df)
    assert store.transaction(needle_ids[0]).test
    assert not store.transaction("ACC_TX_0000000").test


def test_node_stats(ring_df):
    store = build_graph(ring_df)
    stats = get_node_stats(store, "ACC_001")
    assert stats["out_degree"] == 1
    assert stats["in_degree"] == 1
    assert stats["total_sent"] == 1000.0
    assert stats["total_received"] == 850.0
    assert stats["first_seen"].startswith("2024-01-01T10:00:00")
    assert stats["last_seen"].startswith("2024-01-01T12:00:00")
