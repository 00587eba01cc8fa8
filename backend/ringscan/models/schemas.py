"""
Pydantic schemas for RingScan API.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class AccountIn(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None


class TransactionIn(BaseModel):
    id: str
    from_id: str
    to_id: str
    # range checks happen in GraphStore so strict/lenient mode applies
    amount: float
    date: str
    test: bool = False


class LoadRequest(BaseModel):
    accounts: List[AccountIn]
    transactions: List[TransactionIn]
    mode: Optional[Literal["strict", "lenient"]] = None


class SkippedRecord(BaseModel):
    transaction_id: str | None
    reason: str


class LoadSummary(BaseModel):
    accounts_loaded: int
    transactions_loaded: int
    transactions_skipped: int
    cyclic_components: int
    mode: str
    skipped: List[SkippedRecord]
    warnings: List[str] = []


class ScanRequest(BaseModel):
    min_hops: Optional[int] = Field(None, ge=2)
    max_fee_ratio: Optional[float] = Field(None, gt=0.0, lt=1.0)
    max_depth: Optional[int] = Field(None, ge=2)
    time_budget_seconds: Optional[float] = Field(None, gt=0.0)


class CycleEdge(BaseModel):
    from_id: str
    to_id: str
    amount: float
    date: str
    tx_id: str


class MuleRing(BaseModel):
    ring_id: str
    fingerprint: str
    canonical_start: str
    member_accounts: List[str]
    hops: int
    total_amount: float
    transactions: List[CycleEdge]


class ScanSummary(BaseModel):
    status: str
    rings_detected: int
    start_nodes_total: int
    start_nodes_scanned: int
    depth_limited: bool
    min_hops: int
    max_fee_ratio: float
    processing_time_seconds: float


class ScanResponse(BaseModel):
    rings: List[MuleRing]
    summary: ScanSummary


class AccountDetails(BaseModel):
    account_id: str
    name: str | None
    email: str | None
    in_degree: int
    out_degree: int
    total_sent: float
    total_received: float
    first_seen: str | None
    last_seen: str | None
    ring_ids: List[str]


class CancelResponse(BaseModel):
    cancelled: bool
