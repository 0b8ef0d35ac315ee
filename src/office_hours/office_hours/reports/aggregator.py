from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..common.datetime_utils import elapsed_minutes, start_of_day, start_of_week
from ..sessions.model import ClosedSession, Session


@dataclass
class LeaderTotals:
    today_minutes: float = 0.0
    week_minutes: float = 0.0


class TotalsAggregator:
    """Fold sessions into per-leader today/week minutes.

    Open sessions accrue up to ``now``. Closed sessions flagged
    ``exclude_from_totals`` (auto-closed overnight sessions) are left out of both
    totals unless ``honor_exclusions`` is turned off.
    """

    def __init__(self, *, honor_exclusions: bool = True):
        self._honor_exclusions = honor_exclusions

    def compute(self, sessions: Iterable[Session], *, now: datetime) -> dict[str, LeaderTotals]:
        today_start = start_of_day(now)
        week_start = start_of_week(now)
        totals: dict[str, LeaderTotals] = {}

        for s in sessions:
            if not s.leader_id or s.check_in_time is None or s.check_in_time < week_start:
                continue
            if self._honor_exclusions and isinstance(s, ClosedSession) and s.exclude_from_totals:
                continue

            end = s.check_out_time if isinstance(s, ClosedSession) else now
            minutes = elapsed_minutes(s.check_in_time, end)

            t = totals.setdefault(s.leader_id, LeaderTotals())
            t.week_minutes += minutes
            if s.check_in_time >= today_start:
                t.today_minutes += minutes

        return totals
