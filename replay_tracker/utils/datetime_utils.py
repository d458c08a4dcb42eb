"""
Low-level timezone and timestamp utilities.

Match and account timestamps are stored as epoch seconds, so these helpers
convert between aware UTC datetimes and integer epochs.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_epoch() -> int:
    """Return the current time as integer epoch seconds."""
    return int(now_utc().timestamp())


def epoch_to_datetime(value: int) -> datetime:
    """Convert epoch seconds to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(value, tz=timezone.utc)


def millis_to_epoch(value: int | None) -> int | None:
    """Convert a millisecond timestamp (Riot's format) to epoch seconds."""
    if value is None:
        return None
    return value // 1000


def is_stale(synced_at: int | None, max_age: timedelta, now: datetime | None = None) -> bool:
    """Return True when a sync cursor is missing or older than ``max_age``."""
    if synced_at is None:
        return True
    anchor = now or now_utc()
    return anchor - epoch_to_datetime(synced_at) > max_age
