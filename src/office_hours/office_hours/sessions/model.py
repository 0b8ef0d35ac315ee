from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Union

from ..common.datetime_utils import round_minutes
from ..core.enums import SessionState
from ..core.exceptions import CorruptSessionError


@dataclass(frozen=True)
class OpenSession:
    """A clock-in that has not been closed yet."""

    session_id: str
    leader_id: str
    check_in_time: datetime

    state = SessionState.OPEN
    check_out_time = None
    exclude_from_totals = False

    def close(self, *, at: datetime, auto: bool = False) -> "ClosedSession":
        """Freeze the session at ``at``.

        Auto-closed sessions are excluded from totals so a truncated overnight
        span never shows up in reports.
        """
        return ClosedSession(
            session_id=self.session_id,
            leader_id=self.leader_id,
            check_in_time=self.check_in_time,
            check_out_time=at,
            duration_minutes=round_minutes(at - self.check_in_time),
            auto_closed=auto,
            exclude_from_totals=auto,
        )


@dataclass(frozen=True)
class ClosedSession:
    session_id: str
    leader_id: str
    check_in_time: datetime
    check_out_time: datetime
    duration_minutes: int
    auto_closed: bool = False
    exclude_from_totals: bool = False

    state = SessionState.CLOSED


Session = Union[OpenSession, ClosedSession]


def session_from_row(row: Mapping[str, Any]) -> Session:
    """Map a stored session row/document to its variant."""
    session_id = str(row["session_id"])
    leader_id = row.get("leader_id")
    if not leader_id:
        raise CorruptSessionError(f"Session {session_id} has no leader")
    check_in = row.get("check_in_time")
    if not isinstance(check_in, datetime):
        raise CorruptSessionError(f"Session {session_id} has no check-in time")

    check_out = row.get("check_out_time")
    if check_out is None:
        return OpenSession(session_id=session_id, leader_id=str(leader_id), check_in_time=check_in)

    duration = row.get("duration_minutes")
    return ClosedSession(
        session_id=session_id,
        leader_id=str(leader_id),
        check_in_time=check_in,
        check_out_time=check_out,
        duration_minutes=int(duration) if duration is not None else round_minutes(check_out - check_in),
        auto_closed=bool(row.get("auto_closed")),
        exclude_from_totals=bool(row.get("exclude_from_totals")),
    )


def session_to_row(session: Session) -> dict:
    row = {
        "session_id": session.session_id,
        "leader_id": session.leader_id,
        "check_in_time": session.check_in_time,
        "check_out_time": None,
        "duration_minutes": None,
        "auto_closed": False,
        "exclude_from_totals": False,
    }
    if isinstance(session, ClosedSession):
        row.update(
            check_out_time=session.check_out_time,
            duration_minutes=session.duration_minutes,
            auto_closed=session.auto_closed,
            exclude_from_totals=session.exclude_from_totals,
        )
    return row
