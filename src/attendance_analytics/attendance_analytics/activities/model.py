from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import to_utc_naive
from ..core.enums import ActivityStatus


@dataclass(frozen=True)
class ScheduledActivity:
    """A scheduled occurrence (e.g. a training session) owned by one unit."""

    activity_id: int
    unit_id: int
    title: str
    starts_at: datetime
    ends_at: datetime
    location: Optional[str] = None
    status: ActivityStatus = ActivityStatus.SCHEDULED

    @property
    def activity_date(self) -> date:
        return to_utc_naive(self.starts_at).date()

    @property
    def is_cancelled(self) -> bool:
        return self.status == ActivityStatus.CANCELLED
