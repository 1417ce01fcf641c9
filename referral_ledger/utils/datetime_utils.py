"""
Datetime utilities.

All ledger timestamps are UTC. Backends without timezone support (SQLite)
hand them back naive; as_utc() reattaches the zone on the read side.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Normalize stored timestamp to aware UTC.

    Args:
        value: Timestamp read from the store, naive values are taken as UTC

    Returns:
        Aware UTC datetime, or None if value is None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
