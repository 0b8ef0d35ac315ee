from __future__ import annotations

import logging
from datetime import datetime
from threading import RLock
from typing import Callable, Optional, Sequence

from ..attendance.sweep import MidnightSweep
from ..common.datetime_utils import now_local, start_of_day, start_of_week
from ..core.constants import LEADERS_TOPIC, SESSIONS_TOPIC
from ..leaders.model import Leader
from ..leaders.repository import LeaderRepository
from ..reports.aggregator import TotalsAggregator
from ..reports.service import DashboardView, build_dashboard_view
from ..sessions.model import Session
from ..sessions.repository import SessionRepository
from .feed import ChangeFeed, Subscription
from .registry import ActiveSessionRegistry

logger = logging.getLogger(__name__)


class LiveDashboard:
    """Dashboard kept current from change-feed snapshots and a clock tick.

    Holds three kinds of subscriptions: all leaders, sessions checked in since the
    start of the week, and one per active leader's current session (through
    ``ActiveSessionRegistry``). ``stop`` releases all of them.

    Snapshots arrive on whichever thread publishes them while ``tick`` runs on
    the streaming thread, so every piece of view state is read and written under
    one re-entrant lock. When a tick crosses midnight the sweep runs again and
    the sessions subscription moves to the new week if needed.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        leaders: LeaderRepository,
        sessions: SessionRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        aggregator: Optional[TotalsAggregator] = None,
        sweep: Optional[MidnightSweep] = None,
    ):
        self._feed = feed
        self._leaders_repo = leaders
        self._sessions_repo = sessions
        self._clock = clock
        self._aggregator = aggregator or TotalsAggregator()
        self._sweep = sweep

        self._lock = RLock()
        self._active = False
        self._now = clock()
        self._day: Optional[datetime] = None
        self._leaders: Sequence[Leader] = []
        self._sessions: Sequence[Session] = []
        self._registry = ActiveSessionRegistry(feed, sessions, on_change=self._recompute)
        self._leaders_sub: Optional[Subscription] = None
        self._sessions_sub: Optional[Subscription] = None
        self._view = DashboardView(generated_at=self._now)

    @property
    def running(self) -> bool:
        return self._active

    @property
    def registry(self) -> ActiveSessionRegistry:
        return self._registry

    def start(self) -> "LiveDashboard":
        with self._lock:
            if self._active:
                return self
            now = self._clock()
            if self._sweep:
                self._sweep.run(now=now)
            self._active = True
            self._now = now
            self._day = start_of_day(now)
            try:
                self._leaders_sub = self._feed.subscribe(
                    LEADERS_TOPIC, self._leaders_repo.list_all, self._on_leaders
                )
                self._subscribe_sessions(start_of_week(now))
            except Exception:
                self.stop()
                raise
        return self

    def stop(self) -> None:
        with self._lock:
            self._active = False
            for sub in (self._leaders_sub, self._sessions_sub):
                if sub:
                    sub.cancel()
            self._leaders_sub = self._sessions_sub = None
            self._registry.close()

    def tick(self, now: Optional[datetime] = None) -> DashboardView:
        """Advance the clock; stored state only changes if midnight was crossed."""
        now = now or self._clock()
        with self._lock:
            if self._active and self._day is not None and start_of_day(now) != self._day:
                self._roll_over(now)
            self._now = now
            self._recompute()
            return self._view

    def view(self) -> DashboardView:
        with self._lock:
            return self._view

    def __enter__(self) -> "LiveDashboard":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()

    def _roll_over(self, now: datetime) -> None:
        previous_day, self._day = self._day, start_of_day(now)
        if self._sweep:
            result = self._sweep.run(now=now)
            logger.info("Day changed to %s; sweep closed %d session(s)", self._day.date(), result.closed_count)
        week_start = start_of_week(now)
        if week_start != start_of_week(previous_day):
            self._subscribe_sessions(week_start)

    def _subscribe_sessions(self, week_start: datetime) -> None:
        sub = self._feed.subscribe(
            SESSIONS_TOPIC,
            lambda: self._sessions_repo.list_checked_in_since(week_start),
            self._on_sessions,
        )
        previous, self._sessions_sub = self._sessions_sub, sub
        if previous:
            previous.cancel()

    def _on_leaders(self, leaders: Sequence[Leader]) -> None:
        with self._lock:
            if not self._active:
                return
            self._leaders = list(leaders)
            self._registry.sync(self._leaders)
            self._recompute()

    def _on_sessions(self, sessions: Sequence[Session]) -> None:
        with self._lock:
            if not self._active:
                return
            self._sessions = list(sessions)
            self._recompute()

    def _recompute(self) -> None:
        with self._lock:
            self._view = build_dashboard_view(
                self._leaders,
                self._sessions,
                self._registry.check_ins(),
                now=self._now,
                aggregator=self._aggregator,
            )
