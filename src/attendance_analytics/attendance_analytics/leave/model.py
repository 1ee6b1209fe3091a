from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import InsertOutcome, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    """A participant's advance notice that they will miss one activity."""

    request_id: int
    activity_id: int
    participant_id: int
    reason: str
    status: RequestStatus
    requested_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    reviewer_note: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class NewLeaveRequest:
    activity_id: int
    participant_id: int
    reason: str
    requested_at: datetime


@dataclass(frozen=True)
class LeaveInsertResult:
    outcome: InsertOutcome
    request_id: Optional[int] = None

    @property
    def conflicted(self) -> bool:
        return self.outcome == InsertOutcome.CONFLICT
