from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Leader


class LeaderRepository(Protocol):
    """Repository interface for Leader.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, leader_id: str) -> Optional[Leader]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Leader]:
        """All leaders in display order."""

        raise NotImplementedError

    def upsert(self, leader: Leader) -> None:
        """Insert a new leader, or refresh role and order of an existing one.

        Clock status of an existing row is left alone; only the attendance
        transaction writes it.
        """

        raise NotImplementedError

    def delete_all(self, *, batch_size: int) -> int:
        raise NotImplementedError
