from __future__ import annotations

from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import ParticipationStatus, RecordedBy
from .model import InsertResult, NewParticipationRecord, ParticipationRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[ParticipationRecord]:
        raise NotImplementedError

    def find_record(self, activity_id: int, participant_id: int) -> Optional[ParticipationRecord]:
        raise NotImplementedError

    def insert_record(self, record: NewParticipationRecord) -> InsertResult:
        """Insert a record, reporting CONFLICT on a uniqueness violation.

        Every other storage failure raises StoreError.
        """

        raise NotImplementedError

    def bulk_fetch_records(self, activity_ids: Collection[int]) -> Sequence[ParticipationRecord]:
        """All records of the given activities, fetched in one round trip."""

        raise NotImplementedError

    def update_record(
        self,
        *,
        record_id: int,
        status: ParticipationStatus,
        notes: Optional[str],
        recorded_by: RecordedBy,
        reviewer_id: Optional[int],
    ) -> bool:
        """Reviewer override of status/notes."""

        raise NotImplementedError

    def list_for_participant(self, participant_id: int, limit: int) -> Sequence[ParticipationRecord]:
        raise NotImplementedError
