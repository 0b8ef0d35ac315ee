from __future__ import annotations

from enum import Enum


class LeaderStatus(str, Enum):
    """Display status of a leader on kiosk/dashboard."""

    IN_OFFICE = "In office"
    OUT = "Out"

    @classmethod
    def of(cls, is_active: bool) -> "LeaderStatus":
        return cls.IN_OFFICE if is_active else cls.OUT


class SessionState(str, Enum):
    """Tag of the session variant."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class StoreBackend(str, Enum):
    MYSQL = "mysql"
    MEMORY = "memory"
