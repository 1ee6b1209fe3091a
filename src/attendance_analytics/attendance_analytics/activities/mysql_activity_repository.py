from __future__ import annotations

from datetime import date, datetime
from typing import Any, Collection, Dict, Optional, Sequence

from ..common.datetime_utils import ensure_aware, to_utc_naive
from ..core.enums import ActivityStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, store_errors
from .model import ScheduledActivity
from .repository import ActivityRepository

_COLUMNS = "activity_id, unit_id, title, starts_at, ends_at, location, status"


def _to_activity(r: Dict[str, Any]) -> ScheduledActivity:
    return ScheduledActivity(
        activity_id=int(r["activity_id"]),
        unit_id=int(r["unit_id"]),
        title=r["title"],
        starts_at=ensure_aware(r["starts_at"]),
        ends_at=ensure_aware(r["ends_at"]),
        location=r.get("location"),
        status=ActivityStatus(r["status"]),
    )


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, activity_id: int) -> Optional[ScheduledActivity]:
        with store_errors("activities.get_by_id"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM activities WHERE activity_id=%s", (int(activity_id),))
            r = fetchone(cur)
            return _to_activity(r) if r else None

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        unit_ids: Optional[Collection[int]] = None,
    ) -> Sequence[ScheduledActivity]:
        if unit_ids is not None and not unit_ids:
            return []

        clauses = ["DATE(starts_at) BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if unit_ids is not None:
            placeholders, values = in_clause(sorted(int(u) for u in unit_ids))
            clauses.append(f"unit_id IN {placeholders}")
            params.extend(values)

        where = " AND ".join(clauses)
        with store_errors("activities.list_in_range"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM activities WHERE {where} ORDER BY starts_at ASC, activity_id ASC",
                tuple(params),
            )
            return [_to_activity(r) for r in fetchall(cur)]

    def update(
        self,
        *,
        activity_id: int,
        status: ActivityStatus,
        location: Optional[str],
        starts_at: datetime,
        ends_at: datetime,
    ) -> bool:
        with store_errors("activities.update"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE activities
                SET status=%s, location=%s, starts_at=%s, ends_at=%s
                WHERE activity_id=%s
                """,
                (status.value, location, to_utc_naive(starts_at), to_utc_naive(ends_at), int(activity_id)),
            )
            return cur.rowcount > 0
