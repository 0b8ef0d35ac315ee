from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from ..core.enums import LeaderStatus


@dataclass(frozen=True)
class Leader:
    """Domain entity: an office position that can be clocked in or out.

    ``current_session_id`` is set exactly while ``is_active`` is true.
    """

    leader_id: str
    role: str
    order: Optional[int] = None
    is_active: bool = False
    current_session_id: Optional[str] = None

    @property
    def status(self) -> LeaderStatus:
        return LeaderStatus.of(self.is_active)

    @property
    def display_name(self) -> str:
        return self.role or self.leader_id

    def activated(self, session_id: str) -> "Leader":
        return replace(self, is_active=True, current_session_id=session_id)

    def deactivated(self) -> "Leader":
        return replace(self, is_active=False, current_session_id=None)


def display_sort_key(leader: Leader) -> tuple:
    """Order ascending with missing orders last, then role."""
    has_order = leader.order is not None
    return (0 if has_order else 1, leader.order if has_order else 0, leader.role or "")


def leader_from_row(row: Mapping[str, Any]) -> Leader:
    order = row.get("sort_order")
    session_id = row.get("current_session_id")
    return Leader(
        leader_id=str(row["leader_id"]),
        role=str(row.get("role") or ""),
        order=int(order) if order is not None else None,
        is_active=bool(row.get("is_active")),
        current_session_id=str(session_id) if session_id else None,
    )
