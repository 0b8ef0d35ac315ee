from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import start_of_day
from ..core.constants import LEADERS_TOPIC, SESSIONS_TOPIC
from ..core.exceptions import CorruptSessionError
from ..live.feed import ChangeFeed
from ..sessions.model import ClosedSession, OpenSession
from .repository import AttendanceTransaction, AttendanceUnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    midnight: datetime
    closed: tuple[ClosedSession, ...] = ()
    skipped: tuple[str, ...] = ()
    inconsistent: tuple[str, ...] = ()

    @property
    def closed_count(self) -> int:
        return len(self.closed)


class MidnightSweep:
    """Close sessions that were left open across a day boundary.

    A session still open from before today's midnight is assumed abandoned: it
    is closed at midnight, flagged ``auto_closed``/``exclude_from_totals`` and its
    leader is clocked out. Running it again changes nothing.
    """

    def __init__(self, attendance: AttendanceUnitOfWork, *, feed: Optional[ChangeFeed] = None):
        self._attendance = attendance
        self._feed = feed

    def run(self, *, now: Optional[datetime] = None) -> SweepResult:
        with self._attendance.transaction() as tx:
            current = now or tx.server_now()
            active_ids = [l.leader_id for l in tx.list_active_leaders()]

        midnight = start_of_day(current)
        closed: list[ClosedSession] = []
        skipped: list[str] = []
        inconsistent: list[str] = []

        for leader_id in active_ids:
            with self._attendance.transaction() as tx:
                outcome = self._sweep_leader(tx, leader_id, midnight)
            if isinstance(outcome, ClosedSession):
                closed.append(outcome)
            elif outcome == "inconsistent":
                inconsistent.append(leader_id)
            else:
                skipped.append(leader_id)

        if closed:
            logger.info("Midnight sweep closed %d stale session(s) at %s", len(closed), midnight)
            if self._feed:
                self._feed.publish(SESSIONS_TOPIC, LEADERS_TOPIC)

        return SweepResult(
            midnight=midnight,
            closed=tuple(closed),
            skipped=tuple(skipped),
            inconsistent=tuple(inconsistent),
        )

    def _sweep_leader(self, tx: AttendanceTransaction, leader_id: str, midnight: datetime):
        leader = tx.get_leader(leader_id, for_update=True)
        if not leader or not leader.is_active:
            # Clocked out since the scan started.
            return "skipped"
        if not leader.current_session_id:
            logger.warning("Active leader %s has no current session", leader_id)
            return "inconsistent"

        try:
            session = tx.get_session(leader.current_session_id)
        except CorruptSessionError as e:
            logger.warning("Active leader %s: %s", leader_id, e)
            return "inconsistent"

        if session is None:
            logger.warning("Active leader %s points at missing session %s", leader_id, leader.current_session_id)
            return "inconsistent"
        if not isinstance(session, OpenSession):
            logger.warning("Active leader %s points at closed session %s", leader_id, session.session_id)
            return "inconsistent"
        if session.check_in_time >= midnight:
            return "skipped"

        closed = session.close(at=midnight, auto=True)
        tx.close_session(closed)
        tx.save_leader_status(leader.deactivated())
        logger.info(
            "Auto-closed session %s for %s (checked in %s, %s min excluded)",
            closed.session_id,
            leader_id,
            closed.check_in_time,
            closed.duration_minutes,
        )
        return closed
