from __future__ import annotations

from datetime import datetime
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import LeaveInsertResult, LeaveRequest, NewLeaveRequest


class LeaveRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_request(self, activity_id: int, participant_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def create(self, request: NewLeaveRequest) -> LeaveInsertResult:
        """Insert a pending request, reporting CONFLICT on a uniqueness violation."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        note: Optional[str] = None,
    ) -> bool:
        """Move a pending request to ``status``; False when it was no longer pending."""

        raise NotImplementedError

    def list_pending(
        self,
        *,
        unit_ids: Optional[Collection[int]] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        """Pending requests for activities of ``unit_ids`` (None means every unit), oldest first."""

        raise NotImplementedError
