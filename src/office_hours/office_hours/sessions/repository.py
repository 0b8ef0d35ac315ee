from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Session


class SessionRepository(Protocol):
    def get_by_id(self, session_id: str) -> Optional[Session]:
        """Raises CorruptSessionError when the stored row cannot form a session."""

        raise NotImplementedError

    def list_checked_in_since(self, since: datetime) -> Sequence[Session]:
        """Sessions whose check-in is on/after ``since``; unreadable rows are skipped."""

        raise NotImplementedError

    def delete_all(self, *, batch_size: int) -> int:
        raise NotImplementedError
