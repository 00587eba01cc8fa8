"""
In-memory account/transaction snapshot for RingScan.

The store keeps a networkx MultiDiGraph of accounts and transactions and, for
every account, its outgoing transactions sorted by date so the searcher can
skip straight to the transactions that happen after a given moment.
"""

import logging
import math
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import datetime
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

import networkx as nx
import pandas as pd

from ringscan.core.exceptions import (
    DanglingReferenceError,
    DuplicateAccountError,
    InvalidTransactionError,
    LoadError,
)

logger = logging.getLogger(__name__)

LOAD_MODES = ("strict", "lenient")


@dataclass(frozen=True)
class Account:
    """An account node. Attributes are informational only."""

    id: str
    name: Optional[str] = None
    email: Optional[str] = None

    def attributes(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email}


@dataclass(frozen=True)
class Transaction:
    """A directed, dated transfer between two accounts."""

    id: str
    from_id: str
    to_id: str
    amount: float
    date: datetime
    test: bool = field(default=False, compare=False)

    def as_edge(self) -> Dict[str, Any]:
        return {
            "from_id": self.from_id,
            "to_id": self.to_id,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "tx_id": self.id,
        }


AccountLike = Union[Account, Mapping[str, Any]]
TransactionLike = Union[Transaction, Mapping[str, Any]]


def parse_date(value: Any) -> datetime:
    """
    Parse an ISO-8601 string or a datetime into a timezone-aware UTC datetime.
    Naive values are taken as UTC. Numbers are refused rather than read as
    epoch offsets, and so is precision finer than a microsecond.
    """
    if not isinstance(value, (str, datetime)):
        raise ValueError(f"not a timestamp: {value!r}")
    timestamp = pd.Timestamp(value)
    if pd.isna(timestamp):
        raise ValueError(f"not a timestamp: {value!r}")
    if timestamp.nanosecond:
        raise ValueError(f"sub-microsecond precision is not supported: {value!r}")
    if timestamp.tzinfo is None:
        timestamp = timestamp.tz_localize("UTC")
    else:
        timestamp = timestamp.tz_convert("UTC")
    return timestamp.to_pydatetime()


def _clean_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def _clean_attr(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return str(value)


def to_account(record: AccountLike) -> Account:
    """Coerce an account record into an Account."""
    if isinstance(record, Account):
        return record
    account_id = _clean_id(record.get("id"))
    if account_id is None:
        raise LoadError("Account record without an id", "INVALID_ACCOUNT", {"record": dict(record)})
    return Account(
        id=account_id,
        name=_clean_attr(record.get("name")),
        email=_clean_attr(record.get("email")),
    )


def to_transaction(record: TransactionLike) -> Transaction:
    """Coerce a transaction record into a Transaction, validating amount and date."""
    if isinstance(record, Transaction):
        tx_id, from_id, to_id = record.id, record.from_id, record.to_id
        raw_amount, raw_date, test = record.amount, record.date, record.test
    else:
        tx_id = _clean_id(record.get("id"))
        from_id = _clean_id(record.get("from_id"))
        to_id = _clean_id(record.get("to_id"))
        raw_amount = record.get("amount")
        raw_date = record.get("date")
        test = bool(record.get("test") or False)

    if tx_id is None:
        raise InvalidTransactionError(None, "missing transaction id")
    if from_id is None or to_id is None:
        raise InvalidTransactionError(tx_id, "missing from_id or to_id")

    try:
        amount = float(raw_amount)
    except (TypeError, ValueError):
        raise InvalidTransactionError(tx_id, f"amount {raw_amount!r} is not a number")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidTransactionError(tx_id, f"amount must be positive, got {raw_amount!r}")

    try:
        date = parse_date(raw_date)
    except (TypeError, ValueError, OverflowError):
        raise InvalidTransactionError(tx_id, f"date {raw_date!r} could not be parsed")

    return Transaction(id=tx_id, from_id=from_id, to_id=to_id, amount=amount, date=date, test=test)


def _merge_account(existing: Account, incoming: Account) -> Account:
    """Merge two records for the same id, or raise if they disagree."""
    merged = {}
    for name, old in existing.attributes().items():
        new = incoming.attributes()[name]
        if old is not None and new is not None and old != new:
            raise DuplicateAccountError(existing.id, existing.attributes(), incoming.attributes())
        merged[name] = old if old is not None else new
    return Account(id=existing.id, **merged)


class GraphStore:
    """Read-only snapshot of accounts and transactions used by a scan."""

    def __init__(self):
        self._graph = nx.MultiDiGraph()
        self._accounts: Dict[str, Account] = {}
        self._transactions: Dict[str, Transaction] = {}
        self._outgoing: Dict[str, List[Transaction]] = {}
        self._outgoing_dates: Dict[str, List[datetime]] = {}
        self._components: Optional[List[Set[str]]] = None
        self._component_index: Dict[str, int] = {}
        self.skipped: List[Tuple[Optional[str], str]] = []
        self.is_loaded = False

    @classmethod
    def from_records(
        cls,
        accounts: Iterable[AccountLike],
        transactions: Iterable[TransactionLike],
        mode: str = "strict",
    ) -> "GraphStore":
        store = cls()
        store.load(accounts, transactions, mode=mode)
        return store

    def load(
        self,
        accounts: Iterable[AccountLike],
        transactions: Iterable[TransactionLike],
        mode: str = "strict",
    ) -> "GraphStore":
        """
        Build the snapshot from account and transaction records.

        In strict mode any invalid or dangling transaction aborts the load; in
        lenient mode such transactions are skipped and listed in ``skipped``.
        Conflicting account records always abort. The new snapshot replaces
        the current one only once the whole build succeeded.
        """
        if mode not in LOAD_MODES:
            raise ValueError(f"Load mode must be one of: {list(LOAD_MODES)}")
        strict = mode == "strict"

        account_map: Dict[str, Account] = {}
        for record in accounts:
            account = to_account(record)
            if account.id in account_map:
                account_map[account.id] = _merge_account(account_map[account.id], account)
            else:
                account_map[account.id] = account

        graph = nx.MultiDiGraph()
        for account in account_map.values():
            graph.add_node(account.id, **account.attributes())

        tx_map: Dict[str, Transaction] = {}
        skipped: List[Tuple[Optional[str], str]] = []
        for record in transactions:
            try:
                tx = to_transaction(record)
                if tx.id in tx_map:
                    raise InvalidTransactionError(tx.id, "duplicate transaction id")
                for endpoint in (tx.from_id, tx.to_id):
                    if endpoint not in account_map:
                        raise DanglingReferenceError(tx.id, endpoint)
            except (InvalidTransactionError, DanglingReferenceError) as exc:
                if strict:
                    raise
                logger.warning("Skipping transaction: %s", exc.message)
                skipped.append((getattr(exc, "transaction_id", None), exc.message))
                continue
            tx_map[tx.id] = tx
            graph.add_edge(tx.from_id, tx.to_id, key=tx.id, amount=tx.amount, date=tx.date)

        outgoing: Dict[str, List[Transaction]] = {account_id: [] for account_id in account_map}
        for tx in tx_map.values():
            outgoing[tx.from_id].append(tx)
        outgoing_dates: Dict[str, List[datetime]] = {}
        for account_id, edges in outgoing.items():
            edges.sort(key=lambda t: (t.date, t.id))
            outgoing_dates[account_id] = [t.date for t in edges]

        self._graph = graph
        self._accounts = account_map
        self._transactions = tx_map
        self._outgoing = outgoing
        self._outgoing_dates = outgoing_dates
        self._components = None
        self._component_index = {}
        self.skipped = skipped
        self.is_loaded = True

        logger.info(
            "Loaded graph: %d accounts, %d transactions, %d skipped (%s mode)",
            len(account_map),
            len(tx_map),
            len(skipped),
            mode,
        )
        return self

    def outgoing(self, account_id: str, after_date: Optional[datetime] = None) -> Iterator[Transaction]:
        """Outgoing transactions of an account dated strictly after ``after_date``, oldest first."""
        edges = self._outgoing.get(account_id)
        if not edges:
            return iter(())
        if after_date is None:
            return iter(edges)
        start = bisect_right(self._outgoing_dates[account_id], after_date)
        return islice(edges, start, None)

    def account(self, account_id: str) -> Account:
        return self._accounts[account_id]

    def transaction(self, tx_id: str) -> Transaction:
        return self._transactions[tx_id]

    def account_ids(self) -> List[str]:
        return sorted(self._accounts)

    @property
    def transaction_count(self) -> int:
        return len(self._transactions)

    @property
    def graph(self) -> nx.MultiDiGraph:
        return self._graph

    def cyclic_components(self) -> List[Set[str]]:
        """Strongly connected components that can hold a cycle (two or more accounts)."""
        if self._components is None:
            components = [
                set(c) for c in nx.strongly_connected_components(self._graph) if len(c) >= 2
            ]
            components.sort(key=lambda c: min(c))
            self._component_index = {
                account_id: index
                for index, component in enumerate(components)
                for account_id in component
            }
            self._components = components
        return self._components

    def component_of(self, account_id: str) -> Optional[int]:
        """Index of the cyclic component holding the account, or None."""
        self.cyclic_components()
        return self._component_index.get(account_id)

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._accounts
