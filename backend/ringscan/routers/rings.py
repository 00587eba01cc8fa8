"""
Rings router for RingScan API.
"""

from typing import List

from fastapi import APIRouter

from ringscan.core.exceptions import NotFoundError
from ringscan.models.schemas import MuleRing
import ringscan.routers.upload as upload_module


router = APIRouter(prefix="/api/rings", tags=["rings"])


@router.get("", response_model=List[MuleRing])
async def get_all_rings() -> List[MuleRing]:
    """Get all rings from the last scan."""
    if upload_module.state.result is None:
        raise NotFoundError("No scan has been run yet")
    return upload_module.state.rings


@router.get("/{ring_id}", response_model=MuleRing)
async def get_ring_by_id(ring_id: str) -> MuleRing:
    """Get details of a specific ring by ring ID."""
    if upload_module.state.result is None:
        raise NotFoundError("No scan has been run yet")
    for ring in upload_module.state.rings:
        if ring["ring_id"] == ring_id:
            return ring
    raise NotFoundError(f"Ring '{ring_id}' not found", ring_id)
