"""
Common date/time utility functions for consistent date/time handling across the application

Storage: All timestamps are written in UTC by the application (never by database NOW())
Display: Screens convert to local (Asia/Bangkok) time themselves

This keeps ordering stable across PostgreSQL and SQLite:
- Backend stamps admission/discharge/call times with utc_now()
- Values read back naive (SQLite) are treated as UTC
- Backend returns UTC ISO strings to the screens
"""

from datetime import datetime, timedelta, timezone


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC (consistent with how we store it).

    Args:
        dt: datetime object (naive or timezone-aware)

    Returns:
        datetime object in UTC timezone
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def seconds_ago(seconds: int) -> datetime:
    """
    Start of a trailing time window ending now.

    Args:
        seconds: window length in seconds

    Returns:
        UTC datetime `seconds` before now
    """
    return utc_now() - timedelta(seconds=seconds)
