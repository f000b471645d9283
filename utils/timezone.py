"""UTC-everywhere time handling. Every stored timestamp is timezone-aware UTC."""

from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def hours_from(start: datetime, hours: int) -> datetime:
    """UTC deadline `hours` after start."""
    return to_utc(start) + timedelta(hours=hours)


def has_passed(deadline: datetime, now: datetime | None = None) -> bool:
    """Whether deadline is at or before now (defaults to the current time)."""
    return to_utc(deadline) <= (now or now_utc())
