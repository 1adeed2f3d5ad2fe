"""
Time-related utilities for the application.

All timestamps are generated in UTC and serialized using
ISO-8601 format with timezone information so that string
comparison in the metadata store matches chronological order.
"""

from datetime import datetime, timedelta, timezone


def utc_now_iso() -> str:
    """Return current UTC time in ISO-8601 format.

    Example:
        2024-01-15T10:42:31.123456+00:00
    """
    return datetime.now(timezone.utc).isoformat()


def expiry_from_minutes(minutes: int, *, now: datetime | None = None) -> str | None:
    """Return the ISO-8601 expiry timestamp ``minutes`` from now.

    Zero or negative minutes mean the image never expires.
    """
    if minutes <= 0:
        return None

    start = now or datetime.now(timezone.utc)
    return (start + timedelta(minutes=minutes)).isoformat()
