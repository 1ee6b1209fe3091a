from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import InsertOutcome, ParticipationStatus, RecordedBy


@dataclass(frozen=True)
class ParticipationRecord:
    """Domain entity: one participant's attendance for one activity."""

    record_id: int
    activity_id: int
    participant_id: int
    status: ParticipationStatus
    check_in_time: Optional[datetime]
    recorded_by: RecordedBy = RecordedBy.SELF
    reviewer_id: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class NewParticipationRecord:
    activity_id: int
    participant_id: int
    status: ParticipationStatus
    check_in_time: Optional[datetime]
    recorded_by: RecordedBy = RecordedBy.SELF
    reviewer_id: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class InsertResult:
    outcome: InsertOutcome
    record_id: Optional[int] = None

    @property
    def conflicted(self) -> bool:
        return self.outcome == InsertOutcome.CONFLICT


@dataclass(frozen=True)
class CheckInResult:
    record_id: int
    activity_id: int
    participant_id: int
    status: ParticipationStatus
    check_in_time: Optional[datetime]

    @property
    def success(self) -> bool:
        return True
