"""Redis key naming conventions for the trip planner cache."""
from __future__ import annotations

import hashlib

_PREFIX = "st"


def catalog(base_url: str, table_id: str) -> str:
    """Key for the full spring catalog of one Teable table."""
    h = hashlib.sha256(f"{base_url}:{table_id}".encode()).hexdigest()[:12]
    return f"{_PREFIX}:catalog:{table_id}:{h}"
