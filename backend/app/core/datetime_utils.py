"""
Datetime utility functions for handling timezone-aware datetimes.

Every lifecycle timestamp (activity, pause, resume deadline) is compared in
UTC. SQLite hands back naive datetimes, so values read from the database go
through `ensure_timezone_aware` before arithmetic.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Engine modules import this name directly so tests can patch
    `app.core.<module>.utc_now` to move the clock.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def start_of_utc_day(dt: datetime) -> datetime:
    """Midnight UTC of the day containing `dt`."""
    dt = ensure_timezone_aware(dt).astimezone(timezone.utc)
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def utc_day_bounds(dt: datetime) -> tuple[datetime, datetime]:
    """Half-open [start, end) bounds of the UTC day containing `dt`."""
    start = start_of_utc_day(dt)
    return start, start + timedelta(days=1)


def minutes_between(later: datetime, earlier: datetime) -> float:
    """Elapsed minutes from `earlier` to `later` (negative if reversed)."""
    delta = ensure_timezone_aware(later) - ensure_timezone_aware(earlier)
    return delta.total_seconds() / 60
