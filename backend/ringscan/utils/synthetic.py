"""
Synthetic transaction data for RingScan.

``generate_haystack`` produces random transfers whose amounts are drawn
independently of their dates, so valid rings only show up by chance.
``inject_needle`` adds one known ring whose hops are dated one ``step`` apart
and whose amount drops by one unit per hop.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

Records = List[Dict[str, Any]]

DEFAULT_START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def generate_haystack(
    num_accounts: int,
    num_transactions: int,
    seed: Optional[int] = None,
    start: datetime = DEFAULT_START,
    span_days: int = 365,
    min_amount: float = 10.0,
    max_amount: float = 10000.0,
    prefix: str = "ACC",
) -> Tuple[Records, Records]:
    """Random accounts and transactions. No self-transfers are generated."""
    if num_accounts < 2 and num_transactions > 0:
        raise ValueError("Need at least two accounts to generate transactions")
    rng = random.Random(seed)
    width = max(len(str(num_accounts)), 5)
    accounts = [
        {"id": f"{prefix}_{i:0{width}d}", "name": f"Account {i}", "email": f"account{i}@example.com"}
        for i in range(num_accounts)
    ]

    transactions = []
    for i in range(num_transactions):
        sender, receiver = rng.sample(accounts, 2)
        transactions.append(
            {
                "id": f"{prefix}_TX_{i:07d}",
                "from_id": sender["id"],
                "to_id": receiver["id"],
                "amount": round(rng.uniform(min_amount, max_amount), 2),
                "date": (start + timedelta(seconds=rng.uniform(0, span_days * 86400))).isoformat(),
            }
        )
    return accounts, transactions


def inject_needle(
    accounts: Records,
    transactions: Records,
    ring_size: int,
    base_amount: float = 1000.0,
    start: datetime = DEFAULT_START,
    step: timedelta = timedelta(hours=1),
    prefix: str = "NEEDLE",
) -> Tuple[Records, Records, List[str]]:
    """
    Add a ring of ``ring_size`` new accounts to copies of the given records.

    Hop ``i`` moves ``base_amount - i`` and is dated ``start + i * step``.
    Returns the new accounts, the new transactions and the needle's
    transaction ids in ring order.
    """
    if ring_size < 2:
        raise ValueError("A ring needs at least two accounts")
    if base_amount - (ring_size - 1) <= 0:
        raise ValueError("base_amount too small for the ring size")

    ring_accounts = [
        {"id": f"{prefix}_{i:03d}", "name": f"Needle {i}", "email": f"needle{i}@example.com"}
        for i in range(ring_size)
    ]
    ring_transactions = []
    for i in range(ring_size):
        ring_transactions.append(
            {
                "id": f"{prefix}_TX_{i:03d}",
                "from_id": ring_accounts[i]["id"],
                "to_id": ring_accounts[(i + 1) % ring_size]["id"],
                "amount": float(base_amount - i),
                "date": (start + i * step).isoformat(),
                "test": True,
            }
        )

    return (
        list(accounts) + ring_accounts,
        list(transactions) + ring_transactions,
        [tx["id"] for tx in ring_transactions],
    )
