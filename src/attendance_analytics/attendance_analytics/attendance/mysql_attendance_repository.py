from __future__ import annotations

from typing import Any, Collection, Dict, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import ensure_aware, to_utc_naive
from ..config.logging import get_logger
from ..core.enums import InsertOutcome, ParticipationStatus, RecordedBy
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key, store_errors
from .model import InsertResult, NewParticipationRecord, ParticipationRecord
from .repository import AttendanceRepository

logger = get_logger(__name__)

_COLUMNS = "record_id, activity_id, participant_id, status, check_in_time, recorded_by, reviewer_id, notes"


def _to_record(r: Dict[str, Any]) -> ParticipationRecord:
    check_in = r.get("check_in_time")
    return ParticipationRecord(
        record_id=int(r["record_id"]),
        activity_id=int(r["activity_id"]),
        participant_id=int(r["participant_id"]),
        status=ParticipationStatus(r["status"]),
        check_in_time=ensure_aware(check_in) if check_in is not None else None,
        recorded_by=RecordedBy(r.get("recorded_by") or RecordedBy.SELF.value),
        reviewer_id=int(r["reviewer_id"]) if r.get("reviewer_id") is not None else None,
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """Participation records backed by MySQL.

    The ``uq_participation_activity_participant`` unique key is what makes
    concurrent check-ins for the same pair safe; a duplicate-key error is
    reported as ``InsertOutcome.CONFLICT`` rather than raised.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[ParticipationRecord]:
        with store_errors("attendance.get_by_id"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM participation_records WHERE record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_record(self, activity_id: int, participant_id: int) -> Optional[ParticipationRecord]:
        with store_errors("attendance.find_record"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM participation_records
                WHERE activity_id=%s AND participant_id=%s
                """,
                (int(activity_id), int(participant_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert_record(self, record: NewParticipationRecord) -> InsertResult:
        check_in = to_utc_naive(record.check_in_time) if record.check_in_time is not None else None
        with store_errors("attendance.insert_record"):
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    cur.execute(
                        """
                        INSERT INTO participation_records
                            (activity_id, participant_id, status, check_in_time, recorded_by, reviewer_id, notes)
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            int(record.activity_id),
                            int(record.participant_id),
                            record.status.value,
                            check_in,
                            record.recorded_by.value,
                            record.reviewer_id,
                            record.notes,
                        ),
                    )
                    return InsertResult(outcome=InsertOutcome.SUCCESS, record_id=int(cur.lastrowid))
            except mysql.connector.IntegrityError as exc:
                if not is_duplicate_key(exc):
                    raise
                logger.info(
                    "duplicate participation record for activity=%s participant=%s",
                    record.activity_id,
                    record.participant_id,
                )
                return InsertResult(outcome=InsertOutcome.CONFLICT)

    def bulk_fetch_records(self, activity_ids: Collection[int]) -> Sequence[ParticipationRecord]:
        if not activity_ids:
            return []

        placeholders, values = in_clause(sorted(int(a) for a in activity_ids))
        with store_errors("attendance.bulk_fetch_records"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM participation_records WHERE activity_id IN {placeholders}",
                values,
            )
            return [_to_record(r) for r in fetchall(cur)]

    def update_record(
        self,
        *,
        record_id: int,
        status: ParticipationStatus,
        notes: Optional[str],
        recorded_by: RecordedBy,
        reviewer_id: Optional[int],
    ) -> bool:
        with store_errors("attendance.update_record"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE participation_records
                SET status=%s, notes=%s, recorded_by=%s, reviewer_id=%s
                WHERE record_id=%s
                """,
                (status.value, notes, recorded_by.value, reviewer_id, int(record_id)),
            )
            return cur.rowcount > 0

    def list_for_participant(self, participant_id: int, limit: int) -> Sequence[ParticipationRecord]:
        with store_errors("attendance.list_for_participant"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM participation_records
                WHERE participant_id=%s
                ORDER BY created_at DESC, record_id DESC
                LIMIT %s
                """,
                (int(participant_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]
