from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..core.exceptions import CorruptSessionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, delete_in_batches, fetchall, fetchone
from .model import Session, session_from_row
from .repository import SessionRepository

logger = logging.getLogger(__name__)

SESSION_COLUMNS = (
    "session_id, leader_id, check_in_time, check_out_time, duration_minutes, auto_closed, exclude_from_totals"
)


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {SESSION_COLUMNS} FROM sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            return session_from_row(r) if r else None

    def list_checked_in_since(self, since: datetime) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM sessions
                WHERE check_in_time >= %s
                ORDER BY check_in_time
                """,
                (since,),
            )
            rows = fetchall(cur)

        out: list[Session] = []
        for r in rows:
            try:
                out.append(session_from_row(r))
            except CorruptSessionError as e:
                logger.warning("Skipping unreadable session row: %s", e)
        return out

    def delete_all(self, *, batch_size: int) -> int:
        return delete_in_batches(self._conn_factory, table="sessions", key="session_id", batch_size=batch_size)
