from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Sequence

from ..core.exceptions import CorruptSessionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, server_now
from ..leaders.model import Leader, display_sort_key, leader_from_row
from ..sessions.model import ClosedSession, OpenSession, Session, session_from_row
from ..sessions.mysql_session_repository import SESSION_COLUMNS
from .repository import AttendanceTransaction, AttendanceUnitOfWork

_LEADER_COLUMNS = "leader_id, role, sort_order, is_active, current_session_id"


class MySQLAttendanceTransaction(AttendanceTransaction):
    """All statements share one cursor, hence one InnoDB transaction."""

    def __init__(self, cur):
        self._cur = cur

    def server_now(self) -> datetime:
        return server_now(self._cur)

    def get_leader(self, leader_id: str, *, for_update: bool = False) -> Optional[Leader]:
        lock = " FOR UPDATE" if for_update else ""
        self._cur.execute(f"SELECT {_LEADER_COLUMNS} FROM leaders WHERE leader_id=%s{lock}", (leader_id,))
        r = fetchone(self._cur)
        return leader_from_row(r) if r else None

    def list_active_leaders(self) -> Sequence[Leader]:
        self._cur.execute(f"SELECT {_LEADER_COLUMNS} FROM leaders WHERE is_active=1 FOR UPDATE")
        return sorted((leader_from_row(r) for r in fetchall(self._cur)), key=display_sort_key)

    def get_session(self, session_id: str) -> Optional[Session]:
        self._cur.execute(f"SELECT {SESSION_COLUMNS} FROM sessions WHERE session_id=%s FOR UPDATE", (session_id,))
        r = fetchone(self._cur)
        return session_from_row(r) if r else None

    def insert_open_session(self, *, leader_id: str, check_in_time: datetime) -> OpenSession:
        session = OpenSession(session_id=uuid.uuid4().hex, leader_id=leader_id, check_in_time=check_in_time)
        self._cur.execute(
            """
            INSERT INTO sessions(session_id, leader_id, check_in_time, auto_closed, exclude_from_totals)
            VALUES(%s,%s,%s,0,0)
            """,
            (session.session_id, session.leader_id, session.check_in_time),
        )
        return session

    def close_session(self, session: ClosedSession) -> None:
        self._cur.execute(
            """
            UPDATE sessions
            SET check_out_time=%s, duration_minutes=%s, auto_closed=%s, exclude_from_totals=%s
            WHERE session_id=%s AND check_out_time IS NULL
            """,
            (
                session.check_out_time,
                session.duration_minutes,
                int(session.auto_closed),
                int(session.exclude_from_totals),
                session.session_id,
            ),
        )
        if self._cur.rowcount != 1:
            raise CorruptSessionError(f"Session {session.session_id} is already closed")

    def save_leader_status(self, leader: Leader) -> None:
        self._cur.execute(
            "UPDATE leaders SET is_active=%s, current_session_id=%s WHERE leader_id=%s",
            (int(leader.is_active), leader.current_session_id, leader.leader_id),
        )


class MySQLAttendanceUnitOfWork(AttendanceUnitOfWork):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def server_now(self) -> datetime:
        with db_cursor(self._conn_factory) as (_, cur):
            return server_now(cur)

    @contextmanager
    def transaction(self) -> Iterator[MySQLAttendanceTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            yield MySQLAttendanceTransaction(cur)
