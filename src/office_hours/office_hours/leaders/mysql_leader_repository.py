from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, delete_in_batches, fetchall, fetchone
from .model import Leader, display_sort_key, leader_from_row
from .repository import LeaderRepository

_COLUMNS = "leader_id, role, sort_order, is_active, current_session_id"


class MySQLLeaderRepository(LeaderRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, leader_id: str) -> Optional[Leader]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leaders WHERE leader_id=%s", (leader_id,))
            r = fetchone(cur)
            return leader_from_row(r) if r else None

    def list_all(self) -> Sequence[Leader]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leaders")
            leaders = [leader_from_row(r) for r in fetchall(cur)]
        return sorted(leaders, key=display_sort_key)

    def upsert(self, leader: Leader) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaders(leader_id, role, sort_order, is_active, current_session_id)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    role=VALUES(role),
                    sort_order=VALUES(sort_order)
                """,
                (leader.leader_id, leader.role, leader.order, int(leader.is_active), leader.current_session_id),
            )

    def delete_all(self, *, batch_size: int) -> int:
        return delete_in_batches(self._conn_factory, table="leaders", key="leader_id", batch_size=batch_size)
