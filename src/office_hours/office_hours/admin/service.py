from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ..common.validators import require_non_empty, require_positive
from ..core.constants import LEADERS_TOPIC, RESET_BATCH_SIZE, SESSIONS_TOPIC
from ..leaders.model import Leader
from ..leaders.repository import LeaderRepository
from ..live.feed import ChangeFeed
from ..sessions.repository import SessionRepository
from .roster import DEFAULT_ROSTER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetResult:
    leaders_deleted: int
    sessions_deleted: int

    @property
    def message(self) -> str:
        return f"Reset done. Deleted {self.leaders_deleted} leaders and {self.sessions_deleted} sessions."


class AdminService:
    """Dev tools: seed the roster, wipe all data."""

    def __init__(
        self,
        leaders: LeaderRepository,
        sessions: SessionRepository,
        *,
        feed: Optional[ChangeFeed] = None,
        batch_size: int = RESET_BATCH_SIZE,
        roster: Iterable[Leader] = DEFAULT_ROSTER,
    ):
        self._leaders = leaders
        self._sessions = sessions
        self._feed = feed
        self._batch_size = require_positive(batch_size, "Batch size")
        self._roster = tuple(roster)

    def seed_leaders(self) -> int:
        """Upsert every roster position.

        New positions start clocked out. Existing ones keep their clock status so
        a re-seed never strands an open session.
        """
        for entry in self._roster:
            leader_id = require_non_empty(entry.leader_id, "Leader id")
            role = require_non_empty(entry.role, "Role")
            self._leaders.upsert(Leader(leader_id=leader_id, role=role, order=entry.order))

        logger.info("Seeded %d leaders", len(self._roster))
        self._publish(LEADERS_TOPIC)
        return len(self._roster)

    def reset(self) -> ResetResult:
        # Sessions before leaders.
        sessions_deleted = self._sessions.delete_all(batch_size=self._batch_size)
        leaders_deleted = self._leaders.delete_all(batch_size=self._batch_size)

        logger.warning("Reset deleted %d leaders and %d sessions", leaders_deleted, sessions_deleted)
        self._publish(SESSIONS_TOPIC, LEADERS_TOPIC)
        return ResetResult(leaders_deleted=leaders_deleted, sessions_deleted=sessions_deleted)

    def _publish(self, *topics: str) -> None:
        if self._feed:
            self._feed.publish(*topics)
