"""Datetime utilities for timezone-aware UTC timestamps.

SQLite stores datetimes without timezone information, so values read back
from the database are naive. These helpers treat naive values as UTC.

Usage:
    from src.utils.datetime_utils import utc_now, to_iso, parse_iso

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)

    # For JSON payloads
    to_iso(tab.created_at)  # "2026-01-16T14:30:15.123000Z"
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO-8601 UTC string with a ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the ``Z`` suffix produced by JavaScript's toISOString().

    Args:
        value: Timestamp string, or None

    Returns:
        Aware datetime, or None when value is empty

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
