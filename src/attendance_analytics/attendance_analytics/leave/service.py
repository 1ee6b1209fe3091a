from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from ..activities.model import ScheduledActivity
from ..activities.repository import ActivityRepository
from ..attendance.repository import AttendanceRepository
from ..attendance.service import CheckInService
from ..common.clock import Clock, SystemClock
from ..common.validators import optional_note
from ..config.logging import get_logger
from ..core.constants import DEFAULT_PENDING_LIMIT, LEAVE_MIN_NOTICE_HOURS, LEAVE_MIN_REASON_LENGTH
from ..core.enums import ParticipationStatus, RequestStatus
from ..core.exceptions import (
    ActivityCancelledError,
    AuthorizationError,
    DuplicateCheckInError,
    DuplicateLeaveRequestError,
    LeaveTooLateError,
    NotFoundError,
    RequestAlreadyDecidedError,
    StoreError,
    ValidationError,
)
from ..members.repository import MemberRepository
from ..scope.model import CallerScope
from .model import LeaveRequest, NewLeaveRequest
from .repository import LeaveRequestRepository

logger = get_logger(__name__)


class LeaveService:
    """Leave requests: a participant asks in advance, a reviewer decides.

    Approval records the participant as ``excused`` through the regular
    reviewer marking, so it gets the same duplicate handling and report
    invalidation as any other mark.
    """

    def __init__(
        self,
        leave_requests: LeaveRequestRepository,
        activities: ActivityRepository,
        members: MemberRepository,
        attendance: AttendanceRepository,
        check_in_service: CheckInService,
        *,
        clock: Optional[Clock] = None,
        min_notice_hours: float = LEAVE_MIN_NOTICE_HOURS,
        min_reason_length: int = LEAVE_MIN_REASON_LENGTH,
    ):
        self._leave_requests = leave_requests
        self._activities = activities
        self._members = members
        self._attendance = attendance
        self._check_in_service = check_in_service
        self._clock = clock or SystemClock()
        self._min_notice = timedelta(hours=min_notice_hours)
        self._min_reason_length = int(min_reason_length)

    def request_leave(
        self,
        activity_id: int,
        participant_id: int,
        reason: Optional[str],
        *,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        now = now or self._clock.now()

        participant = self._members.get_by_id(int(participant_id))
        if not participant or not participant.is_participant:
            raise NotFoundError("participant not found")

        reason = (reason or "").strip()
        if len(reason) < self._min_reason_length:
            raise ValidationError(f"reason must be at least {self._min_reason_length} characters")

        activity = self._get_activity(activity_id)
        if participant.unit_id != activity.unit_id:
            raise AuthorizationError("cannot request leave for another unit's activity")
        if activity.is_cancelled:
            raise ActivityCancelledError("activity has been cancelled")
        if activity.starts_at < now + self._min_notice:
            raise LeaveTooLateError(
                f"leave must be requested at least {self._min_notice.total_seconds() / 3600:g} hours before the start"
            )

        if self._leave_requests.find_request(activity.activity_id, participant.member_id):
            raise DuplicateLeaveRequestError("leave already requested for this activity")
        if self._attendance.find_record(activity.activity_id, participant.member_id):
            raise DuplicateCheckInError("attendance already recorded for this activity")

        new_request = NewLeaveRequest(
            activity_id=activity.activity_id,
            participant_id=participant.member_id,
            reason=reason,
            requested_at=now,
        )
        try:
            result = self._leave_requests.create(new_request)
        except StoreError:
            logger.exception(
                "failed to store leave request for activity=%s participant=%s",
                activity.activity_id,
                participant.member_id,
            )
            raise
        if result.conflicted:
            raise DuplicateLeaveRequestError("leave already requested for this activity")

        logger.info("participant %s requested leave for activity %s", participant.member_id, activity.activity_id)
        return LeaveRequest(
            request_id=int(result.request_id),
            activity_id=activity.activity_id,
            participant_id=participant.member_id,
            reason=reason,
            status=RequestStatus.PENDING,
            requested_at=now,
        )

    def approve_leave(
        self,
        request_id: int,
        *,
        reviewer_id: int,
        scope: CallerScope,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        now = now or self._clock.now()
        req = self._get_pending(request_id)
        activity = self._get_activity(req.activity_id)
        _require_reviewer_scope(scope, activity)

        self._check_in_service.mark_attendance(
            req.activity_id,
            req.participant_id,
            ParticipationStatus.EXCUSED,
            reviewer_id=reviewer_id,
            scope=scope,
            notes=req.reason,
            now=now,
        )
        return self._decide(req, RequestStatus.APPROVED, reviewer_id=reviewer_id, note=note, now=now)

    def reject_leave(
        self,
        request_id: int,
        *,
        reviewer_id: int,
        scope: CallerScope,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        now = now or self._clock.now()
        req = self._get_pending(request_id)
        _require_reviewer_scope(scope, self._get_activity(req.activity_id))
        return self._decide(req, RequestStatus.REJECTED, reviewer_id=reviewer_id, note=note, now=now)

    def list_pending(self, scope: CallerScope, *, limit: int = DEFAULT_PENDING_LIMIT) -> List[LeaveRequest]:
        if not scope.is_multi_scope:
            raise AuthorizationError("not allowed to review leave requests")
        if limit <= 0:
            raise ValidationError("limit must be positive")
        return list(self._leave_requests.list_pending(unit_ids=scope.unit_filter, limit=int(limit)))

    def _decide(
        self,
        req: LeaveRequest,
        status: RequestStatus,
        *,
        reviewer_id: int,
        note: Optional[str],
        now: datetime,
    ) -> LeaveRequest:
        note = optional_note(note)
        if not self._leave_requests.decide(
            request_id=req.request_id,
            status=status,
            decided_by=int(reviewer_id),
            decided_at=now,
            note=note,
        ):
            raise RequestAlreadyDecidedError("leave request has already been decided")

        logger.info("reviewer %s %s leave request %s", reviewer_id, status.value, req.request_id)
        return LeaveRequest(
            request_id=req.request_id,
            activity_id=req.activity_id,
            participant_id=req.participant_id,
            reason=req.reason,
            status=status,
            requested_at=req.requested_at,
            decided_by=int(reviewer_id),
            decided_at=now,
            reviewer_note=note,
        )

    def _get_pending(self, request_id: int) -> LeaveRequest:
        req = self._leave_requests.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("leave request not found")
        if not req.is_pending:
            raise RequestAlreadyDecidedError("leave request has already been decided")
        return req

    def _get_activity(self, activity_id: int) -> ScheduledActivity:
        activity = self._activities.get_by_id(int(activity_id))
        if not activity:
            raise NotFoundError("activity not found")
        return activity


def _require_reviewer_scope(scope: CallerScope, activity: ScheduledActivity) -> None:
    if not scope.is_multi_scope or not scope.covers_unit(activity.unit_id):
        raise AuthorizationError("not allowed to review leave for this activity")
