"""
Scan router for RingScan API.
"""

from typing import Optional

from fastapi import APIRouter

from ringscan.core.config import settings
from ringscan.core.exceptions import GraphNotLoadedError
from ringscan.models.schemas import CancelResponse, ScanRequest, ScanResponse, ScanSummary
from ringscan.services.cycle_detector import detect_cycles
from ringscan.services.ring_grouper import group_rings
import ringscan.routers.upload as upload_module


router = APIRouter(prefix="/api/scan", tags=["scan"])


# Plain def: FastAPI runs it in its threadpool, so /cancel can be served meanwhile.
@router.post("", response_model=ScanResponse)
def run_scan(request: Optional[ScanRequest] = None) -> ScanResponse:
    """Scan the loaded graph for mule rings."""
    request = request or ScanRequest()
    state = upload_module.state
    store = state.store
    if store is None:
        raise GraphNotLoadedError()

    cancel_event = state.begin_scan()
    try:
        result = detect_cycles(
            store,
            min_hops=request.min_hops or settings.scan_min_hops,
            max_fee_ratio=request.max_fee_ratio or settings.scan_max_fee_ratio,
            max_depth=request.max_depth or settings.max_depth,
            workers=settings.scan_workers,
            chunk_size=settings.scan_chunk_size,
            cancel_event=cancel_event,
            time_budget=request.time_budget_seconds or settings.time_budget,
        )
    finally:
        state.end_scan(cancel_event)

    rings = group_rings(result)
    state.update_result(result, rings)

    return ScanResponse(
        rings=rings,
        summary=ScanSummary(
            status=result.status.value,
            rings_detected=len(rings),
            start_nodes_total=result.start_nodes_total,
            start_nodes_scanned=result.start_nodes_scanned,
            depth_limited=result.depth_limited,
            min_hops=result.min_hops,
            max_fee_ratio=result.max_fee_ratio,
            processing_time_seconds=round(result.elapsed_seconds, 4),
        ),
    )


@router.post("/cancel", response_model=CancelResponse)
async def cancel_scan() -> CancelResponse:
    """Ask the running scan to stop after its current start nodes."""
    cancel_event = upload_module.state.cancel_event
    if cancel_event is None:
        return CancelResponse(cancelled=False)
    cancel_event.set()
    return CancelResponse(cancelled=True)
