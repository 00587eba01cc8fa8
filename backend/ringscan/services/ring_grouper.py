"""
Ring grouping service for RingScan.
"""

from typing import Any, Dict, List

from ringscan.services.cycle_detector import ScanResult


def group_rings(result: ScanResult) -> List[Dict[str, Any]]:
    """Label the cycles of a scan as RING_001, RING_002, ... in a stable order."""
    fraud_rings: List[Dict[str, Any]] = []
    for ring_counter, cycle in enumerate(result.sorted_cycles(), start=1):
        fraud_rings.append(
            {
                "ring_id": f"RING_{ring_counter:03d}",
                "fingerprint": cycle.fingerprint,
                "canonical_start": cycle.canonical_start,
                "member_accounts": cycle.accounts,
                "hops": cycle.hops,
                "total_amount": round(cycle.total_amount, 2),
                "transactions": cycle.edges(),
            }
        )
    return fraud_rings


def rings_by_account(fraud_rings: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Map each account to the ids of the rings it belongs to."""
    account_to_rings: Dict[str, List[str]] = {}
    for ring in fraud_rings:
        for account in ring["member_accounts"]:
            account_to_rings.setdefault(account, []).append(ring["ring_id"])
    return account_to_rings
