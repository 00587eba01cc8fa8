"""
Accounts router for RingScan API.
"""

from fastapi import APIRouter

from ringscan.core.exceptions import GraphNotLoadedError, NotFoundError
from ringscan.models.schemas import AccountDetails
from ringscan.services.graph_builder import get_node_stats
from ringscan.services.ring_grouper import rings_by_account
import ringscan.routers.upload as upload_module


router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("/{account_id}", response_model=AccountDetails)
async def get_account_details(account_id: str) -> AccountDetails:
    """Get attributes, activity and ring membership for a specific account."""
    store = upload_module.state.store
    if store is None:
        raise GraphNotLoadedError()
    if account_id not in store:
        raise NotFoundError(f"Account '{account_id}' not found", account_id)

    account = store.account(account_id)
    ring_ids = rings_by_account(upload_module.state.rings).get(account_id, [])
    return AccountDetails(
        account_id=account.id,
        name=account.name,
        email=account.email,
        ring_ids=ring_ids,
        **get_node_stats(store, account_id),
    )
