"""
Graph building utilities for RingScan.
Turns transaction (and optional account) DataFrames into GraphStore records.
"""

import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from ringscan.services.graph_store import GraphStore
from ringscan.utils.csv_validator import normalize_columns

logger = logging.getLogger(__name__)

ID_COLUMNS = ("id", "from_id", "to_id")


def read_csv_bytes(contents: bytes) -> pd.DataFrame:
    """Parse uploaded CSV bytes, keeping ids as strings."""
    df = normalize_columns(pd.read_csv(io.BytesIO(contents)))
    for col in ID_COLUMNS:
        if col in df.columns:
            df[col] = df[col].map(lambda v: v if pd.isna(v) else str(v))
    return df


def _none_if_missing(value: Any) -> Any:
    return None if pd.isna(value) else value


def transaction_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a transaction DataFrame into record dicts.
    Memory optimization: itertuples() instead of iterrows().
    """
    has_test = "test" in df.columns
    records = []
    for row in df.itertuples(index=False):
        records.append(
            {
                "id": _none_if_missing(row.id),
                "from_id": _none_if_missing(row.from_id),
                "to_id": _none_if_missing(row.to_id),
                "amount": _none_if_missing(row.amount),
                "date": _none_if_missing(row.date),
                "test": bool(row.test) if has_test and not pd.isna(row.test) else False,
            }
        )
    return records


def account_records(
    transactions_df: pd.DataFrame, accounts_df: Optional[pd.DataFrame] = None
) -> List[Dict[str, Any]]:
    """Account records from an account DataFrame, or derived from transaction endpoints."""
    if accounts_df is None:
        endpoints = pd.concat([transactions_df["from_id"], transactions_df["to_id"]]).dropna()
        return [{"id": str(account_id)} for account_id in sorted(endpoints.astype(str).unique())]

    records = []
    for row in accounts_df.to_dict(orient="records"):
        records.append(
            {
                "id": _none_if_missing(row.get("id")),
                "name": _none_if_missing(row.get("name")),
                "email": _none_if_missing(row.get("email")),
            }
        )
    return records


def build_graph(
    transactions_df: pd.DataFrame,
    accounts_df: Optional[pd.DataFrame] = None,
    mode: str = "strict",
) -> GraphStore:
    """Build a GraphStore from transaction and optional account DataFrames."""
    transactions_df = normalize_columns(transactions_df)
    if accounts_df is not None:
        accounts_df = normalize_columns(accounts_df)
    accounts = account_records(transactions_df, accounts_df)
    transactions = transaction_records(transactions_df)
    logger.debug("Building graph from %d account and %d transaction records", len(accounts), len(transactions))
    return GraphStore.from_records(accounts, transactions, mode=mode)


def get_node_stats(store: GraphStore, account_id: str) -> Dict[str, Any]:
    """Degree and volume statistics for one account."""
    graph = store.graph
    sent = [data["amount"] for _, _, data in graph.out_edges(account_id, data=True)]
    received = [data["amount"] for _, _, data in graph.in_edges(account_id, data=True)]
    dates = [data["date"] for _, _, data in graph.out_edges(account_id, data=True)]
    dates.extend(data["date"] for _, _, data in graph.in_edges(account_id, data=True))
    return {
        "in_degree": graph.in_degree(account_id),
        "out_degree": graph.out_degree(account_id),
        "total_sent": float(sum(sent)),
        "total_received": float(sum(received)),
        "first_seen": min(dates).isoformat() if dates else None,
        "last_seen": max(dates).isoformat() if dates else None,
    }

