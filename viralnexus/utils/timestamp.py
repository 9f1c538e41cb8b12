"""Timestamps for mirrored cache entries."""

from datetime import datetime
from typing import Optional

# Largest unit first
_AGE_UNITS = (("d", 86_400), ("h", 3_600), ("m", 60))


def now_exact() -> str:
    """Current local time as an ISO 8601 string with microseconds."""
    return datetime.now().isoformat()


def format_age(stored_at: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Compact age of an ISO 8601 timestamp in its largest whole unit.

    Examples:
        format_age("2026-10-18T18:45:40", now=datetime(2026, 10, 18, 20, 50))
        # "2h"

    Returns "unknown" for missing or unparseable timestamps. Future
    timestamps count as age 0.
    """
    if not stored_at:
        return "unknown"
    try:
        elapsed = (now or datetime.now()) - datetime.fromisoformat(stored_at)
    except (TypeError, ValueError):
        return "unknown"

    seconds = max(int(elapsed.total_seconds()), 0)
    for unit, size in _AGE_UNITS:
        if seconds >= size:
            return f"{seconds // size}{unit}"
    return f"{seconds}s"
