"""Check-in window rules.

A participant may check in from ``early_minutes`` before the activity starts
until ``late_minutes`` after it; both bounds are inclusive. Arriving after the
start (but inside the window) is recorded as late.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import CHECKIN_EARLY_MINUTES, CHECKIN_LATE_MINUTES
from ..core.enums import ParticipationStatus

REASON_TOO_EARLY = "too early"
REASON_TOO_LATE = "too late"


@dataclass(frozen=True)
class CheckInDecision:
    accept: bool
    status: Optional[ParticipationStatus] = None
    reason: str = ""

    @property
    def too_early(self) -> bool:
        return not self.accept and self.reason == REASON_TOO_EARLY


@dataclass(frozen=True)
class CheckInWindow:
    early_minutes: int = CHECKIN_EARLY_MINUTES
    late_minutes: int = CHECKIN_LATE_MINUTES

    def bounds(self, activity_start: datetime) -> tuple[datetime, datetime]:
        return (
            activity_start - timedelta(minutes=self.early_minutes),
            activity_start + timedelta(minutes=self.late_minutes),
        )

    def validate(self, activity_start: datetime, now: datetime) -> CheckInDecision:
        return validate_check_in(
            activity_start,
            now,
            early_minutes=self.early_minutes,
            late_minutes=self.late_minutes,
        )


def validate_check_in(
    activity_start: datetime,
    now: datetime,
    *,
    early_minutes: int = CHECKIN_EARLY_MINUTES,
    late_minutes: int = CHECKIN_LATE_MINUTES,
) -> CheckInDecision:
    earliest = activity_start - timedelta(minutes=early_minutes)
    latest = activity_start + timedelta(minutes=late_minutes)

    if now < earliest:
        return CheckInDecision(accept=False, reason=REASON_TOO_EARLY)
    if now > latest:
        return CheckInDecision(accept=False, reason=REASON_TOO_LATE)

    status = ParticipationStatus.PRESENT if now <= activity_start else ParticipationStatus.LATE
    return CheckInDecision(accept=True, status=status)
