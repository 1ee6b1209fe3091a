from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import ActivityStatus
from .model import ScheduledActivity


class ActivityRepository(Protocol):
    def get_by_id(self, activity_id: int) -> Optional[ScheduledActivity]:
        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        unit_ids: Optional[Collection[int]] = None,
    ) -> Sequence[ScheduledActivity]:
        """All activities whose date falls in [start, end].

        ``unit_ids=None`` means every unit; an empty collection means none.
        """

        raise NotImplementedError

    def update(
        self,
        *,
        activity_id: int,
        status: ActivityStatus,
        location: Optional[str],
        starts_at: datetime,
        ends_at: datetime,
    ) -> bool:
        raise NotImplementedError
