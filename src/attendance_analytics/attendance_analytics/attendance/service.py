from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from ..activities.model import ScheduledActivity
from ..activities.repository import ActivityRepository
from ..common.clock import Clock, SystemClock
from ..common.validators import optional_note
from ..config.logging import get_logger
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ParticipationStatus, RecordedBy
from ..core.exceptions import (
    ActivityCancelledError,
    AuthorizationError,
    DuplicateCheckInError,
    NotFoundError,
    StoreError,
    ValidationError,
    WindowClosedError,
    WindowNotOpenError,
)
from ..members.model import Member
from ..members.repository import MemberRepository
from ..reports.cache import AggregationCache
from ..scope.model import CallerScope
from .model import CheckInResult, NewParticipationRecord, ParticipationRecord
from .repository import AttendanceRepository
from .validator import CheckInWindow

logger = get_logger(__name__)


class CheckInService:
    """Creates participation records.

    Duplicates are rejected twice: a read-check before validation (the
    common case) and the store's unique key on insert, which is what actually
    holds when two requests race between the read and the write.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        activities: ActivityRepository,
        members: MemberRepository,
        *,
        cache: Optional[AggregationCache] = None,
        clock: Optional[Clock] = None,
        window: Optional[CheckInWindow] = None,
    ):
        self._attendance = attendance
        self._activities = activities
        self._members = members
        self._cache = cache
        self._clock = clock or SystemClock()
        self._window = window or CheckInWindow()

    def check_in(self, activity_id: int, participant_id: int, *, now: Optional[datetime] = None) -> CheckInResult:
        now = now or self._clock.now()

        activity = self._get_activity(activity_id)
        participant = self._get_participant(participant_id)
        if activity.is_cancelled:
            raise ActivityCancelledError("activity has been cancelled")
        if participant.unit_id != activity.unit_id:
            raise AuthorizationError("cannot check in to another unit's activity")

        if self._attendance.find_record(activity.activity_id, participant.member_id):
            raise DuplicateCheckInError("already checked in")

        decision = self._window.validate(activity.starts_at, now)
        if not decision.accept:
            if decision.too_early:
                raise WindowNotOpenError(
                    f"check-in opens {self._window.early_minutes} minutes before the start ({decision.reason})"
                )
            raise WindowClosedError(
                f"check-in closed {self._window.late_minutes} minutes after the start ({decision.reason})"
            )

        record = NewParticipationRecord(
            activity_id=activity.activity_id,
            participant_id=participant.member_id,
            status=decision.status,
            check_in_time=now,
            recorded_by=RecordedBy.SELF,
        )
        record_id = self._insert(record)

        logger.info(
            "participant %s checked in to activity %s as %s",
            participant.member_id,
            activity.activity_id,
            decision.status.value,
        )
        self._invalidate(activity, participant.member_id)
        return CheckInResult(
            record_id=record_id,
            activity_id=activity.activity_id,
            participant_id=participant.member_id,
            status=decision.status,
            check_in_time=now,
        )

    def mark_attendance(
        self,
        activity_id: int,
        participant_id: int,
        status: ParticipationStatus,
        *,
        reviewer_id: int,
        scope: CallerScope,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        """Reviewer records a participant's status (attendance sheet).

        Absent and excused records carry no check-in instant.
        """
        activity = self._get_activity(activity_id)
        participant = self._get_participant(participant_id)
        self._require_reviewer_scope(scope, activity)
        if participant.unit_id != activity.unit_id:
            raise ValidationError("participant does not belong to the activity's unit")

        if self._attendance.find_record(activity.activity_id, participant.member_id):
            raise DuplicateCheckInError("attendance already recorded")

        attended = status in (ParticipationStatus.PRESENT, ParticipationStatus.LATE)
        check_in_time = (now or self._clock.now()) if attended else None
        record = NewParticipationRecord(
            activity_id=activity.activity_id,
            participant_id=participant.member_id,
            status=status,
            check_in_time=check_in_time,
            recorded_by=RecordedBy.REVIEWER,
            reviewer_id=int(reviewer_id),
            notes=optional_note(notes),
        )
        record_id = self._insert(record)

        logger.info(
            "reviewer %s marked participant %s as %s for activity %s",
            reviewer_id,
            participant.member_id,
            status.value,
            activity.activity_id,
        )
        self._invalidate(activity, participant.member_id)
        return CheckInResult(
            record_id=record_id,
            activity_id=activity.activity_id,
            participant_id=participant.member_id,
            status=status,
            check_in_time=check_in_time,
        )

    def override_record(
        self,
        record_id: int,
        *,
        status: ParticipationStatus,
        reviewer_id: int,
        scope: CallerScope,
        notes: Optional[str] = None,
    ) -> ParticipationRecord:
        record = self._attendance.get_by_id(int(record_id))
        if not record:
            raise NotFoundError("attendance record not found")

        activity = self._get_activity(record.activity_id)
        self._require_reviewer_scope(scope, activity)

        notes = optional_note(notes)
        if not self._attendance.update_record(
            record_id=record.record_id,
            status=status,
            notes=notes,
            recorded_by=RecordedBy.REVIEWER,
            reviewer_id=int(reviewer_id),
        ):
            raise NotFoundError("attendance record not found")

        logger.info(
            "reviewer %s changed record %s from %s to %s",
            reviewer_id,
            record.record_id,
            record.status.value,
            status.value,
        )
        self._invalidate(activity, record.participant_id)
        return ParticipationRecord(
            record_id=record.record_id,
            activity_id=record.activity_id,
            participant_id=record.participant_id,
            status=status,
            check_in_time=record.check_in_time,
            recorded_by=RecordedBy.REVIEWER,
            reviewer_id=int(reviewer_id),
            notes=notes,
        )

    def get_history(self, participant_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> List[ParticipationRecord]:
        if limit <= 0:
            raise ValidationError("limit must be positive")
        return list(self._attendance.list_for_participant(int(participant_id), int(limit)))

    def _get_activity(self, activity_id: int) -> ScheduledActivity:
        activity = self._activities.get_by_id(int(activity_id))
        if not activity:
            raise NotFoundError("activity not found")
        return activity

    def _get_participant(self, participant_id: int) -> Member:
        participant = self._members.get_by_id(int(participant_id))
        if not participant or not participant.is_participant:
            raise NotFoundError("participant not found")
        return participant

    @staticmethod
    def _require_reviewer_scope(scope: CallerScope, activity: ScheduledActivity) -> None:
        if not scope.is_multi_scope or not scope.covers_unit(activity.unit_id):
            raise AuthorizationError("not allowed to record attendance for this activity")

    def _insert(self, record: NewParticipationRecord) -> int:
        try:
            result = self._attendance.insert_record(record)
        except StoreError:
            logger.exception(
                "failed to store participation record for activity=%s participant=%s",
                record.activity_id,
                record.participant_id,
            )
            raise
        if result.conflicted:
            # Another request inserted the same pair after our read-check.
            raise DuplicateCheckInError("already checked in")
        return int(result.record_id)

    def _invalidate(self, activity: ScheduledActivity, participant_id: int) -> None:
        if self._cache is not None:
            self._cache.invalidate(unit_id=activity.unit_id, participant_id=participant_id)
