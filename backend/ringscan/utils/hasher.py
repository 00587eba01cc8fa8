"""
Hashing utilities for RingScan.
"""

import json
import hashlib
from datetime import datetime, timezone
from typing import Sequence


def cycle_fingerprint(key: Sequence[str]) -> str:
    """SHA-256 of a cycle's canonical transaction-id sequence."""
    json_string = json.dumps(list(key))
    hash_object = hashlib.sha256(json_string.encode("utf-8"))
    return hash_object.hexdigest()


def get_timestamp() -> str:
    """Get current UTC time as ISO format string."""
    return datetime.now(timezone.utc).isoformat()
