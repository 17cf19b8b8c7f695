from __future__ import annotations
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Single time source; every assignment/expiry computation reads it."""
    return datetime.now(timezone.utc)
