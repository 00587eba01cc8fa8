"""
Upload router for RingScan API.
Loads accounts and transactions into the in-memory GraphStore.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import APIRouter, UploadFile, File, HTTPException

from ringscan.core.config import settings
from ringscan.core.exceptions import ScanInProgressError
from ringscan.models.schemas import LoadRequest, LoadSummary, SkippedRecord
from ringscan.services.cycle_detector import ScanResult
from ringscan.services.graph_builder import build_graph, read_csv_bytes
from ringscan.services.graph_store import GraphStore
from ringscan.utils.csv_validator import validate_accounts_csv, validate_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])


class AnalysisState:
    """Holds the loaded graph, the last scan and the running scan's cancel event."""

    def __init__(self):
        self.lock = threading.Lock()
        self.store: Optional[GraphStore] = None
        self.result: Optional[ScanResult] = None
        self.rings: List[Dict[str, Any]] = []
        self.cancel_event: Optional[threading.Event] = None

    def update_store(self, store: GraphStore):
        with self.lock:
            self.store = store
            self.result = None
            self.rings = []

    def update_result(self, result: ScanResult, rings: List[Dict[str, Any]]):
        with self.lock:
            self.result = result
            self.rings = rings

    def begin_scan(self) -> threading.Event:
        """Register the cancel event of a new scan. Only one scan runs at a time."""
        with self.lock:
            if self.cancel_event is not None:
                raise ScanInProgressError()
            self.cancel_event = threading.Event()
            return self.cancel_event

    def end_scan(self, cancel_event: threading.Event):
        with self.lock:
            if self.cancel_event is cancel_event:
                self.cancel_event = None

    def reset(self):
        with self.lock:
            self.store = None
            self.result = None
            self.rings = []
            self.cancel_event = None


state = AnalysisState()


def _summary(store: GraphStore, mode: str, warnings: Optional[List[str]] = None) -> LoadSummary:
    return LoadSummary(
        accounts_loaded=len(store),
        transactions_loaded=store.transaction_count,
        transactions_skipped=len(store.skipped),
        cyclic_components=len(store.cyclic_components()),
        mode=mode,
        skipped=[SkippedRecord(transaction_id=tx_id, reason=reason) for tx_id, reason in store.skipped],
        warnings=warnings or [],
    )


@router.post("/upload", response_model=LoadSummary)
async def upload_csv(
    transactions: UploadFile = File(...),
    accounts: Optional[UploadFile] = File(None),
) -> LoadSummary:
    """Upload transaction (and optional account) CSV files and load them."""
    uploads = [transactions] + ([accounts] if accounts is not None else [])
    for upload in uploads:
        if not (upload.filename or "").endswith(".csv"):
            raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    try:
        transactions_df = read_csv_bytes(await transactions.read())
        accounts_df = read_csv_bytes(await accounts.read()) if accounts is not None else None
    except (ValueError, UnicodeDecodeError, pd.errors.ParserError) as e:
        logger.warning("CSV parse error: %s", e)
        raise HTTPException(status_code=400, detail=f"Failed to parse CSV: {str(e)}")

    validation_result = validate_csv(transactions_df)
    logger.debug("Validation result: %s", validation_result)
    mode = settings.load_mode
    # lenient loads skip bad rows instead of rejecting the file
    if not validation_result["valid"] and (mode == "strict" or validation_result["row_count"] == 0):
        raise HTTPException(
            status_code=400,
            detail={
                "message": "CSV validation failed",
                "errors": validation_result["errors"],
            },
        )

    warnings = list(validation_result["warnings"])
    if accounts_df is not None:
        account_validation = validate_accounts_csv(accounts_df)
        if not account_validation["valid"]:
            raise HTTPException(
                status_code=400,
                detail={
                    "message": "Account CSV validation failed",
                    "errors": account_validation["errors"],
                },
            )
        warnings.extend(account_validation["warnings"])

    store = build_graph(transactions_df, accounts_df, mode=mode)
    state.update_store(store)
    return _summary(store, mode, warnings)


@router.post("/load", response_model=LoadSummary)
async def load_records(request: LoadRequest) -> LoadSummary:
    """Load account and transaction records sent as JSON."""
    mode = request.mode or settings.load_mode
    store = GraphStore.from_records(
        [account.model_dump() for account in request.accounts],
        [transaction.model_dump() for transaction in request.transactions],
        mode=mode,
    )
    state.update_store(store)
    return _summary(store, mode)
