from __future__ import annotations

from typing import Any, Collection, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, store_errors
from .model import Member
from .repository import MemberRepository

_COLUMNS = "member_id, full_name, nickname, unit_id, role, is_active"


def _to_member(r: Dict[str, Any]) -> Member:
    return Member(
        member_id=int(r["member_id"]),
        full_name=r["full_name"],
        unit_id=int(r["unit_id"]) if r.get("unit_id") is not None else None,
        role=Role(r["role"]),
        nickname=r.get("nickname"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, member_id: int) -> Optional[Member]:
        with store_errors("members.get_by_id"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM members WHERE member_id=%s", (int(member_id),))
            r = fetchone(cur)
            return _to_member(r) if r else None

    def list_participants(
        self,
        *,
        unit_ids: Optional[Collection[int]] = None,
        member_id: Optional[int] = None,
    ) -> Sequence[Member]:
        if unit_ids is not None and not unit_ids:
            return []

        clauses = ["role=%s", "is_active=1"]
        params: list[object] = [Role.ATHLETE.value]
        if unit_ids is not None:
            placeholders, values = in_clause(sorted(int(u) for u in unit_ids))
            clauses.append(f"unit_id IN {placeholders}")
            params.extend(values)
        if member_id is not None:
            clauses.append("member_id=%s")
            params.append(int(member_id))

        where = " AND ".join(clauses)
        with store_errors("members.list_participants"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM members WHERE {where} ORDER BY full_name ASC", tuple(params))
            return [_to_member(r) for r in fetchall(cur)]
