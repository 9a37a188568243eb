"""Timestamp helpers shared by analyzers, services and repositories."""

from datetime import date, datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as timezone-aware UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp stored by a repository."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value)))


def day_key(value: datetime | date) -> str:
    """Calendar day of ``value`` as an ISO date string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    return value.isoformat()
