from __future__ import annotations

import uuid
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StoreError
from .connection import DatabaseConnection


def translate_error(exc: mysql.connector.Error) -> StoreError:
    """Map connector errors onto the store error codes services understand."""
    errno = getattr(exc, "errno", None)
    message = getattr(exc, "msg", None) or str(exc)
    if errno == errorcode.ER_NO_SUCH_TABLE:
        return StoreError(message, StoreError.RELATION_MISSING)
    if errno == errorcode.ER_DUP_ENTRY:
        return StoreError(message, StoreError.DUPLICATE_KEY)
    return StoreError(message)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise translate_error(e) from e
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise translate_error(e) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def fetch_single(cur) -> Dict[str, Any]:
    """Exactly one row, or StoreError (NO_ROWS when nothing matched)."""
    rows = fetchall(cur)
    if not rows:
        raise StoreError("The result contains 0 rows", StoreError.NO_ROWS)
    if len(rows) > 1:
        raise StoreError(f"The result contains {len(rows)} rows")
    return rows[0]


def new_id() -> str:
    return str(uuid.uuid4())


def as_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
