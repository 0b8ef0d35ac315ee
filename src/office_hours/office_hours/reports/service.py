from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..attendance.sweep import MidnightSweep
from ..common.datetime_utils import format_duration, format_minutes, now_local, start_of_week
from ..core.exceptions import CorruptSessionError
from ..leaders.model import Leader
from ..leaders.repository import LeaderRepository
from ..sessions.model import OpenSession, Session
from ..sessions.repository import SessionRepository
from .aggregator import LeaderTotals, TotalsAggregator

logger = logging.getLogger(__name__)

LOADING_CHECK_IN = "(loading check-in time…)"


@dataclass(frozen=True)
class InOfficeRow:
    leader_id: str
    name: str
    check_in_time: Optional[str]
    elapsed: str


@dataclass(frozen=True)
class TotalsRow:
    leader_id: str
    name: str
    today_minutes: float
    week_minutes: float
    today: str
    week: str
    status: str


@dataclass(frozen=True)
class DashboardView:
    generated_at: datetime
    in_office: list[InOfficeRow] = field(default_factory=list)
    totals: list[TotalsRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat(),
            "in_office": [asdict(r) for r in self.in_office],
            "totals": [asdict(r) for r in self.totals],
        }

    def csv_rows(self) -> list[dict]:
        return [
            {
                "leader_id": r.leader_id,
                "leader": r.name,
                "today_minutes": round(r.today_minutes, 2),
                "week_minutes": round(r.week_minutes, 2),
                "today": r.today,
                "this_week": r.week,
                "status": r.status,
            }
            for r in self.totals
        ]


def build_dashboard_view(
    leaders: Sequence[Leader],
    sessions: Iterable[Session],
    check_ins: Mapping[str, datetime],
    *,
    now: datetime,
    aggregator: Optional[TotalsAggregator] = None,
) -> DashboardView:
    """Pure read-model builder shared by the request/response and live dashboards."""
    totals = (aggregator or TotalsAggregator()).compute(sessions, now=now)

    in_office: list[InOfficeRow] = []
    for l in leaders:
        if not l.is_active:
            continue
        ci = check_ins.get(l.leader_id)
        in_office.append(
            InOfficeRow(
                leader_id=l.leader_id,
                name=l.display_name,
                check_in_time=ci.strftime("%H:%M:%S") if ci else None,
                elapsed=format_duration((now - ci).total_seconds() * 1000) if ci else LOADING_CHECK_IN,
            )
        )

    rows: list[TotalsRow] = []
    for l in leaders:
        t = totals.get(l.leader_id) or LeaderTotals()
        rows.append(
            TotalsRow(
                leader_id=l.leader_id,
                name=l.display_name,
                today_minutes=t.today_minutes,
                week_minutes=t.week_minutes,
                today=format_minutes(t.today_minutes),
                week=format_minutes(t.week_minutes),
                status=l.status.value,
            )
        )

    return DashboardView(generated_at=now, in_office=in_office, totals=rows)


class DashboardService:
    """Use case: "who is in the office" plus today/week totals.

    ``clock`` should be the store clock so the sweep and the totals compare
    against the same time source as recorded check-ins.
    """

    def __init__(
        self,
        leaders: LeaderRepository,
        sessions: SessionRepository,
        *,
        sweep: Optional[MidnightSweep] = None,
        aggregator: Optional[TotalsAggregator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._leaders = leaders
        self._sessions = sessions
        self._sweep = sweep
        self._aggregator = aggregator or TotalsAggregator()
        self._clock = clock

    def build(self, *, now: Optional[datetime] = None, run_sweep: bool = True) -> DashboardView:
        now = now or self._clock()
        if self._sweep and run_sweep:
            self._sweep.run(now=now)

        leaders = self._leaders.list_all()
        sessions = self._sessions.list_checked_in_since(start_of_week(now))
        return build_dashboard_view(
            leaders,
            sessions,
            self._active_check_ins(leaders, sessions),
            now=now,
            aggregator=self._aggregator,
        )

    def _active_check_ins(self, leaders: Sequence[Leader], sessions: Sequence[Session]) -> dict[str, datetime]:
        open_by_id = {s.session_id: s for s in sessions if isinstance(s, OpenSession)}
        out: dict[str, datetime] = {}
        for l in leaders:
            if not (l.is_active and l.current_session_id):
                continue
            session = open_by_id.get(l.current_session_id)
            if session is None:
                try:
                    session = self._sessions.get_by_id(l.current_session_id)
                except CorruptSessionError as e:
                    logger.warning("Active leader %s has an unreadable session: %s", l.leader_id, e)
                    continue
            if session is not None:
                out[l.leader_id] = session.check_in_time
        return out
