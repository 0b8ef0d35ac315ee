from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .admin.service import AdminService
from .attendance.mysql_attendance_repository import MySQLAttendanceUnitOfWork
from .attendance.repository import AttendanceUnitOfWork
from .attendance.service import ClockService
from .attendance.sweep import MidnightSweep
from .core.constants import RESET_BATCH_SIZE
from .core.enums import StoreBackend
from .database.connection import DatabaseConnection, DBConfig
from .database.memory_store import (
    InMemoryAttendanceUnitOfWork,
    InMemoryDatabase,
    InMemoryLeaderRepository,
    InMemorySessionRepository,
)
from .leaders.mysql_leader_repository import MySQLLeaderRepository
from .leaders.repository import LeaderRepository
from .live.dashboard import LiveDashboard
from .live.feed import ChangeFeed
from .reports.aggregator import TotalsAggregator
from .reports.service import DashboardService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository


@dataclass(frozen=True)
class Container:
    feed: ChangeFeed

    leaders_repo: LeaderRepository
    sessions_repo: SessionRepository
    attendance_uow: AttendanceUnitOfWork

    clock_service: ClockService
    midnight_sweep: MidnightSweep
    dashboard_service: DashboardService
    admin_service: AdminService

    def live_dashboard(self) -> LiveDashboard:
        return LiveDashboard(
            self.feed,
            self.leaders_repo,
            self.sessions_repo,
            clock=self.attendance_uow.server_now,
            aggregator=TotalsAggregator(),
            sweep=self.midnight_sweep,
        )


def build_container(
    *,
    db_config: Optional[dict] = None,
    backend: str = StoreBackend.MYSQL.value,
    batch_size: int = RESET_BATCH_SIZE,
    memory_db: Optional[InMemoryDatabase] = None,
) -> Container:
    if StoreBackend(backend) is StoreBackend.MEMORY:
        db = memory_db or InMemoryDatabase()
        leaders_repo = InMemoryLeaderRepository(db)
        sessions_repo = InMemorySessionRepository(db)
        attendance_uow = InMemoryAttendanceUnitOfWork(db)
    else:
        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config or {}))
        leaders_repo = MySQLLeaderRepository(conn)
        sessions_repo = MySQLSessionRepository(conn)
        attendance_uow = MySQLAttendanceUnitOfWork(conn)

    feed = ChangeFeed()
    midnight_sweep = MidnightSweep(attendance_uow, feed=feed)

    return Container(
        feed=feed,
        leaders_repo=leaders_repo,
        sessions_repo=sessions_repo,
        attendance_uow=attendance_uow,
        clock_service=ClockService(attendance_uow, feed=feed),
        midnight_sweep=midnight_sweep,
        dashboard_service=DashboardService(
            leaders_repo, sessions_repo, sweep=midnight_sweep, clock=attendance_uow.server_now
        ),
        admin_service=AdminService(leaders_repo, sessions_repo, feed=feed, batch_size=batch_size),
    )
