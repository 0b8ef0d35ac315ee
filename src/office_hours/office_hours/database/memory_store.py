"""In-process storage backend.

Implements the same repository protocols as the MySQL backend. Transactions
work on copies of the tables under a re-entrant lock and swap them in on commit,
so a failed clock-in/clock-out leaves nothing behind.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from threading import RLock
from typing import Callable, Iterator, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import CorruptSessionError
from ..leaders.model import Leader, display_sort_key, leader_from_row
from ..sessions.model import ClosedSession, OpenSession, Session, session_from_row, session_to_row

logger = logging.getLogger(__name__)


def _leader_to_row(leader: Leader) -> dict:
    return {
        "leader_id": leader.leader_id,
        "role": leader.role,
        "sort_order": leader.order,
        "is_active": leader.is_active,
        "current_session_id": leader.current_session_id,
    }


class InMemoryDatabase:
    """Tables keyed by primary key; rows are plain dicts like MySQL dict cursors return."""

    def __init__(self, *, clock: Optional[Callable[[], datetime]] = None):
        self.leaders: dict[str, dict] = {}
        self.sessions: dict[str, dict] = {}
        self.lock = RLock()
        self.clock = clock or now_local

    def server_now(self) -> datetime:
        return self.clock()


class InMemoryLeaderRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    def get_by_id(self, leader_id: str) -> Optional[Leader]:
        with self._db.lock:
            row = self._db.leaders.get(leader_id)
            return leader_from_row(row) if row else None

    def list_all(self) -> Sequence[Leader]:
        with self._db.lock:
            leaders = [leader_from_row(r) for r in self._db.leaders.values()]
        return sorted(leaders, key=display_sort_key)

    def upsert(self, leader: Leader) -> None:
        with self._db.lock:
            row = self._db.leaders.get(leader.leader_id)
            if row is None:
                self._db.leaders[leader.leader_id] = _leader_to_row(leader)
            else:
                row.update(role=leader.role, sort_order=leader.order)

    def delete_all(self, *, batch_size: int) -> int:
        return _delete_in_batches(self._db, "leaders", batch_size)


class InMemorySessionRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with self._db.lock:
            row = self._db.sessions.get(session_id)
            return session_from_row(row) if row else None

    def list_checked_in_since(self, since: datetime) -> Sequence[Session]:
        with self._db.lock:
            rows = [dict(r) for r in self._db.sessions.values()]

        out: list[Session] = []
        for r in rows:
            check_in = r.get("check_in_time")
            if not isinstance(check_in, datetime) or check_in < since:
                continue
            try:
                out.append(session_from_row(r))
            except CorruptSessionError as e:
                logger.warning("Skipping unreadable session row: %s", e)
        out.sort(key=lambda s: s.check_in_time)
        return out

    def delete_all(self, *, batch_size: int) -> int:
        return _delete_in_batches(self._db, "sessions", batch_size)


def _delete_in_batches(db: InMemoryDatabase, table_name: str, batch_size: int) -> int:
    with db.lock:
        keys = list(getattr(db, table_name).keys())
    for i in range(0, len(keys), batch_size):
        with db.lock:
            table = getattr(db, table_name)
            for key in keys[i : i + batch_size]:
                table.pop(key, None)
    return len(keys)


class InMemoryAttendanceTransaction:
    def __init__(self, db: InMemoryDatabase, leaders: dict[str, dict], sessions: dict[str, dict]):
        self._db = db
        self.leaders = leaders
        self.sessions = sessions

    def server_now(self) -> datetime:
        return self._db.server_now()

    def get_leader(self, leader_id: str, *, for_update: bool = False) -> Optional[Leader]:
        # The whole transaction already holds the store lock.
        row = self.leaders.get(leader_id)
        return leader_from_row(row) if row else None

    def list_active_leaders(self) -> Sequence[Leader]:
        active = [leader_from_row(r) for r in self.leaders.values() if r.get("is_active")]
        return sorted(active, key=display_sort_key)

    def get_session(self, session_id: str) -> Optional[Session]:
        row = self.sessions.get(session_id)
        return session_from_row(row) if row else None

    def insert_open_session(self, *, leader_id: str, check_in_time: datetime) -> OpenSession:
        session = OpenSession(session_id=uuid.uuid4().hex, leader_id=leader_id, check_in_time=check_in_time)
        self.sessions[session.session_id] = session_to_row(session)
        return session

    def close_session(self, session: ClosedSession) -> None:
        row = self.sessions.get(session.session_id)
        if row is None or row.get("check_out_time") is not None:
            raise CorruptSessionError(f"Session {session.session_id} is already closed")
        self.sessions[session.session_id] = session_to_row(session)

    def save_leader_status(self, leader: Leader) -> None:
        row = self.leaders.get(leader.leader_id)
        if row is None:
            return
        row["is_active"] = leader.is_active
        row["current_session_id"] = leader.current_session_id


class InMemoryAttendanceUnitOfWork:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    def server_now(self) -> datetime:
        return self._db.server_now()

    @contextmanager
    def transaction(self) -> Iterator[InMemoryAttendanceTransaction]:
        with self._db.lock:
            tx = InMemoryAttendanceTransaction(
                self._db,
                leaders={k: dict(v) for k, v in self._db.leaders.items()},
                sessions={k: dict(v) for k, v in self._db.sessions.items()},
            )
            yield tx
            self._db.leaders = tx.leaders
            self._db.sessions = tx.sessions
