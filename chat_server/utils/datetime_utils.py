"""
Centralized datetime utilities.

All timestamps are produced in Python as timezone-aware UTC values so that
ordering never depends on the database clock.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Use this instead of datetime.utcnow() to ensure timezone awareness.

    Returns:
        datetime: Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure datetime is UTC timezone-aware.

    Converts naive datetime (assumed to be UTC) to timezone-aware UTC.
    If datetime is already timezone-aware, converts to UTC.

    Some drivers (SQLite) hand back naive values for timezone-aware columns,
    so compare database timestamps only after passing them through here.

    Args:
        dt: Datetime object (naive or aware) or None

    Returns:
        datetime | None: UTC timezone-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_iso_utc(dt: datetime | None) -> str | None:
    """
    Convert datetime to ISO format with 'Z' suffix (UTC indicator).

    Args:
        dt: Datetime object or None

    Returns:
        str | None: ISO 8601 string with 'Z' suffix or None if input is None

    Example:
        >>> dt = datetime(2025, 12, 16, 11, 30, 0, 123456, tzinfo=timezone.utc)
        >>> to_iso_utc(dt)
        "2025-12-16T11:30:00.123456Z"
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')


def milliseconds_ago(ms: int, now: datetime | None = None) -> datetime:
    """Return the UTC instant `ms` milliseconds before `now`."""
    return (now or utc_now()) - timedelta(milliseconds=ms)
