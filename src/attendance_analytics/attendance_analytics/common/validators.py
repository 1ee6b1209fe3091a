from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.exceptions import InvalidRangeError, ValidationError


def require_date_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidRangeError("start date must be on or before end date")


def require_positive_timeout(timeout: Optional[float]) -> Optional[float]:
    if timeout is None:
        return None
    if timeout <= 0:
        raise ValidationError("timeout must be a positive number of seconds")
    return float(timeout)


def optional_note(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
