from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, roll back on any error."""
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


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def server_now(cur) -> datetime:
    """Database clock, so timestamps never depend on the web host's clock."""
    cur.execute("SELECT NOW(6) AS server_now")
    return fetchone(cur)["server_now"]


def delete_in_batches(
    conn_factory: DatabaseConnection,
    *,
    table: str,
    key: str,
    batch_size: int,
) -> int:
    """Delete every row of ``table``, committing at most ``batch_size`` rows at a time."""
    with db_cursor(conn_factory) as (_, cur):
        cur.execute(f"SELECT {key} FROM {table}")
        keys = [r[key] for r in fetchall(cur)]

    for i in range(0, len(keys), batch_size):
        chunk = keys[i : i + batch_size]
        placeholders = ",".join(["%s"] * len(chunk))
        with db_cursor(conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {table} WHERE {key} IN ({placeholders})", tuple(chunk))
    return len(keys)
