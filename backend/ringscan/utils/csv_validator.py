"""
CSV validation utilities for RingScan.
"""

from datetime import datetime

import pandas as pd
from typing import Dict, List, Any

TRANSACTION_COLUMNS = ["id", "from_id", "to_id", "amount", "date"]
ACCOUNT_COLUMNS = ["id"]

# Column names used by older exports
COLUMN_ALIASES = {
    "transaction_id": "id",
    "sender_id": "from_id",
    "receiver_id": "to_id",
    "timestamp": "date",
}


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Strip column names and rename legacy names to the record field names."""
    df = df.rename(columns=lambda c: str(c).strip())
    renames = {
        old: new
        for old, new in COLUMN_ALIASES.items()
        if old in df.columns and new not in df.columns
    }
    return df.rename(columns=renames)


def _result(errors: List[str], warnings: List[str], row_count: int, account_count: int) -> Dict[str, Any]:
    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "row_count": row_count,
        "account_count": account_count,
    }


def validate_csv(df: pd.DataFrame) -> Dict[str, Any]:
    """Validate a pandas DataFrame containing transaction data."""
    errors: List[str] = []
    warnings: List[str] = []

    missing_columns = [col for col in TRANSACTION_COLUMNS if col not in df.columns]
    if missing_columns:
        errors.append(f"Missing required columns: {', '.join(missing_columns)}")
        return _result(errors, warnings, 0, 0)

    row_count = len(df)
    if row_count == 0:
        errors.append("CSV file is empty - no data rows found")
        return _result(errors, warnings, 0, 0)

    for col in TRANSACTION_COLUMNS:
        null_count = int(df[col].isnull().sum())
        if null_count > 0:
            errors.append(f"Column '{col}' contains {null_count} null values")

    amounts = pd.to_numeric(df["amount"], errors="coerce")
    non_numeric = int(amounts.isnull().sum() - df["amount"].isnull().sum())
    if non_numeric > 0:
        errors.append(f"Column 'amount' contains {non_numeric} non-numeric values")
    non_positive = int((amounts <= 0).sum())
    if non_positive > 0:
        errors.append(f"Column 'amount' contains {non_positive} non-positive values")

    # numbers would otherwise be read as epoch nanoseconds
    numeric_dates = df["date"].map(lambda v: not pd.isna(v) and not isinstance(v, (str, datetime)))
    numeric_count = int(numeric_dates.sum())
    if numeric_count > 0:
        errors.append(f"Column 'date' contains {numeric_count} numeric values, expected ISO-8601 timestamps")

    text_dates = df["date"].where(~numeric_dates)
    dates = pd.to_datetime(text_dates, errors="coerce", utc=True, format="mixed")
    unparseable = int(dates.isnull().sum() - text_dates.isnull().sum())
    if unparseable > 0:
        errors.append(f"Column 'date' contains {unparseable} values that could not be parsed")
    sub_microsecond = int((dates.dropna().dt.nanosecond > 0).sum())
    if sub_microsecond > 0:
        errors.append(f"Column 'date' contains {sub_microsecond} values with sub-microsecond precision")

    duplicate_transaction_ids = int(df["id"].duplicated().sum())
    if duplicate_transaction_ids > 0:
        errors.append(f"Found {duplicate_transaction_ids} duplicate transaction id values")

    self_loops = int((df["from_id"].astype(str) == df["to_id"].astype(str)).sum())
    if self_loops > 0:
        warnings.append(f"Found {self_loops} transactions from an account to itself")

    unique_senders = set(df["from_id"].dropna().astype(str).unique())
    unique_receivers = set(df["to_id"].dropna().astype(str).unique())
    account_count = len(unique_senders.union(unique_receivers))

    return _result(errors, warnings, row_count, account_count)


def validate_accounts_csv(df: pd.DataFrame) -> Dict[str, Any]:
    """Validate a pandas DataFrame containing account data."""
    errors: List[str] = []
    warnings: List[str] = []

    if "id" not in df.columns:
        errors.append("Missing required columns: id")
        return _result(errors, warnings, 0, 0)

    null_count = int(df["id"].isnull().sum())
    if null_count > 0:
        errors.append(f"Column 'id' contains {null_count} null values")

    duplicate_ids = int(df["id"].duplicated().sum())
    if duplicate_ids > 0:
        warnings.append(f"Found {duplicate_ids} repeated account id values")

    return _result(errors, warnings, len(df), int(df["id"].nunique()))
