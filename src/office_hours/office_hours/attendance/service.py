from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.validators import require_non_empty
from ..core.constants import LEADERS_TOPIC, SESSIONS_TOPIC
from ..core.exceptions import AlreadyActiveError, CorruptSessionError, NotActiveError, NotFoundError
from ..live.feed import ChangeFeed
from ..sessions.model import ClosedSession, OpenSession, Session
from .repository import AttendanceUnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockResult:
    leader_id: str
    session: Session
    message: str


class ClockService:
    """Use case: clock a leader in or out.

    Each operation reads "now" once and writes the Session and the Leader inside
    the same transaction.
    """

    def __init__(self, attendance: AttendanceUnitOfWork, *, feed: Optional[ChangeFeed] = None):
        self._attendance = attendance
        self._feed = feed

    def clock_in(self, leader_id: str, *, now: Optional[datetime] = None) -> ClockResult:
        leader_id = require_non_empty(leader_id, "Leader id")

        with self._attendance.transaction() as tx:
            leader = tx.get_leader(leader_id, for_update=True)
            if not leader:
                raise NotFoundError(f"{leader_id} not found.")
            if leader.is_active:
                raise AlreadyActiveError(f"{leader_id} is already clocked in.")
            if leader.current_session_id:
                logger.warning(
                    "Inactive leader %s still references session %s; replacing it",
                    leader_id,
                    leader.current_session_id,
                )

            check_in = now or tx.server_now()
            session = tx.insert_open_session(leader_id=leader_id, check_in_time=check_in)
            tx.save_leader_status(leader.activated(session.session_id))

        logger.info("%s clocked in (session %s)", leader_id, session.session_id)
        self._publish()
        return ClockResult(leader_id=leader_id, session=session, message=f"{leader_id} clocked in")

    def clock_out(self, leader_id: str, *, now: Optional[datetime] = None) -> ClockResult:
        leader_id = require_non_empty(leader_id, "Leader id")

        with self._attendance.transaction() as tx:
            leader = tx.get_leader(leader_id, for_update=True)
            if not leader:
                raise NotFoundError(f"{leader_id} not found.")
            if not leader.is_active or not leader.current_session_id:
                raise NotActiveError(f"{leader_id} is not currently clocked in.")

            session = tx.get_session(leader.current_session_id)
            if session is None:
                logger.warning("Active leader %s points at missing session %s", leader_id, leader.current_session_id)
                raise NotFoundError(f"Session {leader.current_session_id} for {leader_id} not found.")
            if not isinstance(session, OpenSession):
                logger.warning("Active leader %s points at closed session %s", leader_id, session.session_id)
                raise CorruptSessionError(f"Session {session.session_id} for {leader_id} is already closed.")

            closed: ClosedSession = session.close(at=now or tx.server_now())
            tx.close_session(closed)
            tx.save_leader_status(leader.deactivated())

        logger.info("%s clocked out after %s min", leader_id, closed.duration_minutes)
        self._publish()
        return ClockResult(leader_id=leader_id, session=closed, message=f"{leader_id} clocked out")

    def _publish(self) -> None:
        if self._feed:
            self._feed.publish(SESSIONS_TOPIC, LEADERS_TOPIC)
