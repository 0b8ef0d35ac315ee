from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..core.constants import SESSIONS_TOPIC
from ..core.exceptions import CorruptSessionError
from ..leaders.model import Leader
from ..sessions.model import Session
from ..sessions.repository import SessionRepository
from .feed import ChangeFeed, Subscription

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    session_id: str
    subscription: Subscription
    check_in_time: Optional[datetime] = None


class ActiveSessionRegistry:
    """Per-leader subscriptions to the current session of every active leader.

    Owned by a dashboard view: ``sync`` is called with each leaders snapshot,
    ``close`` when the view goes away. Not thread-safe on its own; the owner
    serializes ``sync``, ``close`` and ``check_ins`` under its lock.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        sessions: SessionRepository,
        *,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._feed = feed
        self._sessions = sessions
        self._on_change = on_change
        self._entries: dict[str, _Entry] = {}

    def __contains__(self, leader_id: str) -> bool:
        return leader_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def leader_ids(self) -> set[str]:
        return set(self._entries)

    def check_in_for(self, leader_id: str) -> Optional[datetime]:
        entry = self._entries.get(leader_id)
        return entry.check_in_time if entry else None

    def check_ins(self) -> dict[str, datetime]:
        return {lid: e.check_in_time for lid, e in self._entries.items() if e.check_in_time is not None}

    def sync(self, leaders: Iterable[Leader]) -> None:
        wanted = {l.leader_id: l.current_session_id for l in leaders if l.is_active and l.current_session_id}

        for leader_id in list(self._entries):
            if wanted.get(leader_id) != self._entries[leader_id].session_id:
                self._release(leader_id)

        for leader_id, session_id in wanted.items():
            if leader_id not in self._entries:
                self._add(leader_id, session_id)

    def close(self) -> None:
        for leader_id in list(self._entries):
            self._release(leader_id)

    def _add(self, leader_id: str, session_id: str) -> None:
        def load() -> Optional[Session]:
            try:
                return self._sessions.get_by_id(session_id)
            except CorruptSessionError as e:
                logger.warning("Active leader %s has an unreadable session: %s", leader_id, e)
                return None

        def on_snapshot(session: Optional[Session]) -> None:
            entry = self._entries.get(leader_id)
            if session is None or entry is None or entry.session_id != session_id:
                return
            entry.check_in_time = session.check_in_time
            if self._on_change:
                self._on_change()

        # Register before subscribing so the initial delivery finds the entry.
        entry = _Entry(session_id=session_id, subscription=None)  # type: ignore[arg-type]
        self._entries[leader_id] = entry
        try:
            entry.subscription = self._feed.subscribe(SESSIONS_TOPIC, load, on_snapshot)
        except Exception:
            del self._entries[leader_id]
            raise

    def _release(self, leader_id: str) -> None:
        entry = self._entries.pop(leader_id, None)
        if entry and entry.subscription:
            entry.subscription.cancel()
