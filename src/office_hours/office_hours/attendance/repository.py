from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..leaders.model import Leader
from ..sessions.model import ClosedSession, OpenSession, Session


class AttendanceTransaction(Protocol):
    """Reads and writes that commit or roll back together.

    Clock-in/clock-out and the midnight sweep touch a Session and its Leader;
    both writes go through one transaction so neither can be left orphaned.
    """

    def server_now(self) -> datetime:
        raise NotImplementedError

    def get_leader(self, leader_id: str, *, for_update: bool = False) -> Optional[Leader]:
        raise NotImplementedError

    def list_active_leaders(self) -> Sequence[Leader]:
        raise NotImplementedError

    def get_session(self, session_id: str) -> Optional[Session]:
        raise NotImplementedError

    def insert_open_session(self, *, leader_id: str, check_in_time: datetime) -> OpenSession:
        raise NotImplementedError

    def close_session(self, session: ClosedSession) -> None:
        """Persist the close; raises CorruptSessionError if it was already closed."""

        raise NotImplementedError

    def save_leader_status(self, leader: Leader) -> None:
        """Write only ``is_active`` and ``current_session_id``."""

        raise NotImplementedError


class AttendanceUnitOfWork(Protocol):
    def server_now(self) -> datetime:
        """Store clock, outside any transaction."""

        raise NotImplementedError

    def transaction(self) -> ContextManager[AttendanceTransaction]:
        raise NotImplementedError
