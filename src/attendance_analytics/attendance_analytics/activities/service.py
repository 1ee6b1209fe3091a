from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.validators import optional_note
from ..config.logging import get_logger
from ..core.enums import ActivityStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..reports.cache import AggregationCache
from ..scope.model import CallerScope
from .model import ScheduledActivity
from .repository import ActivityRepository

logger = get_logger(__name__)


class ActivityAdminService:
    """Administrative edits to scheduled activities.

    Any edit can change which activities a report counts, so cached reports
    for the activity's unit are dropped after every successful write.
    """

    def __init__(self, activities: ActivityRepository, *, cache: Optional[AggregationCache] = None):
        self._activities = activities
        self._cache = cache

    def update_activity(
        self,
        activity_id: int,
        *,
        scope: CallerScope,
        status: Optional[ActivityStatus] = None,
        location: Optional[str] = None,
        starts_at: Optional[datetime] = None,
        ends_at: Optional[datetime] = None,
    ) -> ScheduledActivity:
        current = self._activities.get_by_id(int(activity_id))
        if not current:
            raise NotFoundError("activity not found")
        if not scope.is_multi_scope or not scope.covers_unit(current.unit_id):
            raise AuthorizationError("not allowed to edit this activity")

        updated = ScheduledActivity(
            activity_id=current.activity_id,
            unit_id=current.unit_id,
            title=current.title,
            starts_at=starts_at or current.starts_at,
            ends_at=ends_at or current.ends_at,
            location=optional_note(location) if location is not None else current.location,
            status=status or current.status,
        )
        if updated.ends_at <= updated.starts_at:
            raise ValidationError("activity must end after it starts")

        if not self._activities.update(
            activity_id=updated.activity_id,
            status=updated.status,
            location=updated.location,
            starts_at=updated.starts_at,
            ends_at=updated.ends_at,
        ):
            raise NotFoundError("activity not found")

        logger.info("activity %s updated (status=%s)", updated.activity_id, updated.status.value)
        if self._cache is not None:
            self._cache.invalidate(unit_id=updated.unit_id)
        return updated

    def cancel_activity(self, activity_id: int, *, scope: CallerScope) -> ScheduledActivity:
        return self.update_activity(activity_id, scope=scope, status=ActivityStatus.CANCELLED)
