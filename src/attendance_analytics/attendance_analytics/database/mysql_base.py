from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Collection, Dict, Iterator, List, Optional, Tuple

import mysql.connector
from mysql.connector import errorcode

from ..config.logging import get_logger
from ..core.exceptions import StoreError
from .connection import DatabaseConnection

logger = get_logger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate connector failures into StoreError for the service layer."""
    try:
        yield
    except mysql.connector.Error as exc:
        logger.error("store operation %s failed: %s", operation, exc)
        raise StoreError(f"{operation} failed") from exc


def is_duplicate_key(exc: mysql.connector.Error) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Collection[Any]) -> Tuple[str, Tuple[Any, ...]]:
    """Build ``IN (%s, %s, ...)`` placeholders for a non-empty collection."""
    items = tuple(values)
    if not items:
        raise ValueError("in_clause requires at least one value")
    return "(" + ", ".join(["%s"] * len(items)) + ")", items
