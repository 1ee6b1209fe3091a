from __future__ import annotations

from datetime import datetime, timezone

import mysql.connector
import pytest

from attendance_analytics.attendance.model import NewParticipationRecord
from attendance_analytics.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from attendance_analytics.core.enums import InsertOutcome, ParticipationStatus, RequestStatus
from attendance_analytics.core.exceptions import StoreError
from attendance_analytics.database.bootstrap import iter_sql_statements
from attendance_analytics.database.mysql_base import in_clause
from attendance_analytics.leave.model import NewLeaveRequest
from attendance_analytics.leave.mysql_leave_repository import MySQLLeaveRequestRepository


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.lastrowid = 41
        self.rowcount = 0

    def execute(self, sql, params=None):
        self._conn.executed.append((" ".join(sql.split()), params))
        if self._conn.raise_on_execute is not None:
            raise self._conn.raise_on_execute

    def fetchone(self):
        return self._conn.rows[0] if self._conn.rows else None

    def fetchall(self):
        return list(self._conn.rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, *, rows=(), raise_on_execute=None):
        self.rows = list(rows)
        self.raise_on_execute = raise_on_execute
        self.executed = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, conn: FakeConnection):
        self.conn = conn

    def connect(self, *, with_database: bool = True):
        return self.conn


def new_record() -> NewParticipationRecord:
    return NewParticipationRecord(
        activity_id=1,
        participant_id=100,
        status=ParticipationStatus.PRESENT,
        check_in_time=datetime(2025, 1, 10, 8, 45, tzinfo=timezone.utc),
    )


def test_insert_success_returns_row_id():
    conn = FakeConnection()

    result = MySQLAttendanceRepository(FakeConnFactory(conn)).insert_record(new_record())

    assert result.outcome == InsertOutcome.SUCCESS
    assert result.record_id == 41
    assert conn.committed and conn.closed
    # stored as naive UTC
    assert conn.executed[0][1][3] == datetime(2025, 1, 10, 8, 45)


def test_duplicate_key_is_conflict():
    dup = mysql.connector.IntegrityError(msg="Duplicate entry '1-100'", errno=1062)
    conn = FakeConnection(raise_on_execute=dup)

    result = MySQLAttendanceRepository(FakeConnFactory(conn)).insert_record(new_record())

    assert result.outcome == InsertOutcome.CONFLICT
    assert result.conflicted
    assert conn.rolled_back


def test_other_integrity_errors_become_store_errors():
    fk = mysql.connector.IntegrityError(msg="Cannot add or update a child row", errno=1452)
    conn = FakeConnection(raise_on_execute=fk)

    with pytest.raises(StoreError):
        MySQLAttendanceRepository(FakeConnFactory(conn)).insert_record(new_record())


def test_connection_failure_becomes_store_error():
    conn = FakeConnection(raise_on_execute=mysql.connector.OperationalError(msg="gone away", errno=2006))

    with pytest.raises(StoreError) as exc_info:
        MySQLAttendanceRepository(FakeConnFactory(conn)).find_record(1, 100)

    assert "find_record" in str(exc_info.value)


def test_bulk_fetch_uses_single_in_query():
    conn = FakeConnection(
        rows=[
            {
                "record_id": 1,
                "activity_id": 3,
                "participant_id": 100,
                "status": "late",
                "check_in_time": datetime(2025, 1, 10, 9, 5),
                "recorded_by": "self",
                "reviewer_id": None,
                "notes": None,
            }
        ]
    )

    records = MySQLAttendanceRepository(FakeConnFactory(conn)).bulk_fetch_records({3, 1, 2})

    assert len(conn.executed) == 1
    sql, params = conn.executed[0]
    assert "IN (%s, %s, %s)" in sql
    assert params == (1, 2, 3)
    assert records[0].status == ParticipationStatus.LATE
    assert records[0].check_in_time.tzinfo is timezone.utc


def test_bulk_fetch_without_ids_skips_store():
    conn = FakeConnection()

    assert MySQLAttendanceRepository(FakeConnFactory(conn)).bulk_fetch_records([]) == []
    assert conn.executed == []


def test_in_clause_rejects_empty():
    with pytest.raises(ValueError):
        in_clause([])


def test_sql_splitter_keeps_quoted_semicolons():
    sql = "CREATE TABLE a (x INT);\nINSERT INTO a VALUES ('x;y');\n\n"

    assert list(iter_sql_statements(sql)) == ["CREATE TABLE a (x INT)", "INSERT INTO a VALUES ('x;y')"]


def new_leave() -> NewLeaveRequest:
    return NewLeaveRequest(
        activity_id=1,
        participant_id=100,
        reason="family wedding upcountry",
        requested_at=datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc),
    )


def test_leave_duplicate_key_is_conflict():
    dup = mysql.connector.IntegrityError(msg="Duplicate entry '1-100'", errno=1062)
    conn = FakeConnection(raise_on_execute=dup)

    result = MySQLLeaveRequestRepository(FakeConnFactory(conn)).create(new_leave())

    assert result.conflicted
    assert conn.rolled_back


def test_leave_created_as_pending():
    conn = FakeConnection()

    result = MySQLLeaveRequestRepository(FakeConnFactory(conn)).create(new_leave())

    assert result.request_id == 41
    _, params = conn.executed[0]
    assert params[3:] == ("pending", datetime(2025, 1, 10, 8, 0))


def test_leave_decision_only_updates_pending_rows():
    conn = FakeConnection()

    decided = MySQLLeaveRequestRepository(FakeConnFactory(conn)).decide(
        request_id=5,
        status=RequestStatus.APPROVED,
        decided_by=2,
        decided_at=datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc),
    )

    sql, params = conn.executed[0]
    assert "WHERE request_id=%s AND status=%s" in sql
    assert params[-2:] == (5, "pending")
    assert decided is False


def test_pending_leave_filters_by_activity_unit():
    conn = FakeConnection(
        rows=[
            {
                "request_id": 5,
                "activity_id": 1,
                "participant_id": 100,
                "reason": "family wedding upcountry",
                "status": "pending",
                "requested_at": datetime(2025, 1, 10, 8, 0),
                "decided_by": None,
                "decided_at": None,
                "reviewer_note": None,
            }
        ]
    )

    (req,) = MySQLLeaveRequestRepository(FakeConnFactory(conn)).list_pending(unit_ids={20, 10}, limit=50)

    sql, params = conn.executed[0]
    assert "JOIN activities a" in sql
    assert "a.unit_id IN (%s, %s)" in sql
    assert params == ("pending", 10, 20, 50)
    assert req.is_pending
    assert req.requested_at.tzinfo is timezone.utc


def test_pending_leave_for_no_units_skips_store():
    conn = FakeConnection()

    assert MySQLLeaveRequestRepository(FakeConnFactory(conn)).list_pending(unit_ids=set()) == []
    assert conn.executed == []
