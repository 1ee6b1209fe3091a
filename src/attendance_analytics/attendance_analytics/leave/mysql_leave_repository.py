from __future__ import annotations

from datetime import datetime
from typing import Any, Collection, Dict, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import ensure_aware, to_utc_naive
from ..config.logging import get_logger
from ..core.enums import InsertOutcome, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key, store_errors
from .model import LeaveInsertResult, LeaveRequest, NewLeaveRequest
from .repository import LeaveRequestRepository

logger = get_logger(__name__)

_COLUMNS = (
    "lr.request_id, lr.activity_id, lr.participant_id, lr.reason, lr.status, "
    "lr.requested_at, lr.decided_by, lr.decided_at, lr.reviewer_note"
)


def _to_request(r: Dict[str, Any]) -> LeaveRequest:
    decided_at = r.get("decided_at")
    return LeaveRequest(
        request_id=int(r["request_id"]),
        activity_id=int(r["activity_id"]),
        participant_id=int(r["participant_id"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        requested_at=ensure_aware(r["requested_at"]),
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        decided_at=ensure_aware(decided_at) if decided_at is not None else None,
        reviewer_note=r.get("reviewer_note"),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    """Leave requests backed by MySQL.

    ``uq_leave_activity_participant`` allows one request per participant and
    activity; a duplicate-key error is reported as ``InsertOutcome.CONFLICT``.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with store_errors("leave.get_by_id"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests lr WHERE lr.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_request(self, activity_id: int, participant_id: int) -> Optional[LeaveRequest]:
        with store_errors("leave.find_request"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests lr
                WHERE lr.activity_id=%s AND lr.participant_id=%s
                """,
                (int(activity_id), int(participant_id)),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def create(self, request: NewLeaveRequest) -> LeaveInsertResult:
        with store_errors("leave.create"):
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    cur.execute(
                        """
                        INSERT INTO leave_requests (activity_id, participant_id, reason, status, requested_at)
                        VALUES (%s, %s, %s, %s, %s)
                        """,
                        (
                            int(request.activity_id),
                            int(request.participant_id),
                            request.reason,
                            RequestStatus.PENDING.value,
                            to_utc_naive(request.requested_at),
                        ),
                    )
                    return LeaveInsertResult(outcome=InsertOutcome.SUCCESS, request_id=int(cur.lastrowid))
            except mysql.connector.IntegrityError as exc:
                if not is_duplicate_key(exc):
                    raise
                logger.info(
                    "duplicate leave request for activity=%s participant=%s",
                    request.activity_id,
                    request.participant_id,
                )
                return LeaveInsertResult(outcome=InsertOutcome.CONFLICT)

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        note: Optional[str] = None,
    ) -> bool:
        with store_errors("leave.decide"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=%s, reviewer_note=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    to_utc_naive(decided_at),
                    note,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def list_pending(
        self,
        *,
        unit_ids: Optional[Collection[int]] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        if unit_ids is not None and not unit_ids:
            return []

        clauses = ["lr.status=%s"]
        params: list[object] = [RequestStatus.PENDING.value]
        if unit_ids is not None:
            placeholders, values = in_clause(sorted(int(u) for u in unit_ids))
            clauses.append(f"a.unit_id IN {placeholders}")
            params.extend(values)
        params.append(int(limit))

        where = " AND ".join(clauses)
        with store_errors("leave.list_pending"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests lr
                JOIN activities a ON a.activity_id = lr.activity_id
                WHERE {where}
                ORDER BY lr.requested_at ASC, lr.request_id ASC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_request(r) for r in fetchall(cur)]
