from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by MySQL DATETIME) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_utc_naive(value: datetime) -> datetime:
    """Normalize an aware datetime for storage in a DATETIME column."""
    return ensure_aware(value).astimezone(timezone.utc).replace(tzinfo=None)


def format_instant(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_aware(value).isoformat()
