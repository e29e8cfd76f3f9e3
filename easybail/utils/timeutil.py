"""Timestamp helpers. Everything stored and compared is timezone-aware UTC."""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Interpret naive datetimes (as returned by SQLite) as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    return ensure_aware(dt).astimezone(timezone.utc)
