from __future__ import annotations

from typing import Collection, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause, store_errors
from .unit_model import Unit
from .unit_repository import UnitRepository


class MySQLUnitRepository(UnitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_units(self, *, unit_ids: Optional[Collection[int]] = None) -> Sequence[Unit]:
        if unit_ids is not None and not unit_ids:
            return []

        sql = "SELECT unit_id, name FROM units"
        params: tuple = ()
        if unit_ids is not None:
            placeholders, params = in_clause(sorted(int(u) for u in unit_ids))
            sql += f" WHERE unit_id IN {placeholders}"
        sql += " ORDER BY name ASC"

        with store_errors("units.list_units"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [Unit(unit_id=int(r["unit_id"]), name=r["name"]) for r in fetchall(cur)]
