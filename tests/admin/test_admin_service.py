from __future__ import annotations

from datetime import datetime

import pytest

from src.office_hours.office_hours.admin.service import AdminService
from src.office_hours.office_hours.attendance.service import ClockService
from src.office_hours.office_hours.core.exceptions import ValidationError
from src.office_hours.office_hours.database.memory_store import (
    InMemoryAttendanceUnitOfWork,
    InMemoryDatabase,
    InMemoryLeaderRepository,
    InMemorySessionRepository,
)
from src.office_hours.office_hours.leaders.model import Leader
from src.office_hours.office_hours.live.feed import ChangeFeed


def _setup(batch_size: int = 450):
    db = InMemoryDatabase()
    leaders = InMemoryLeaderRepository(db)
    feed = ChangeFeed()
    admin = AdminService(leaders, InMemorySessionRepository(db), feed=feed, batch_size=batch_size)
    return db, leaders, feed, admin, ClockService(InMemoryAttendanceUnitOfWork(db))


def test_seed_creates_full_roster_in_display_order():
    _, leaders, _, admin, _ = _setup()

    assert admin.seed_leaders() == 23

    roster = leaders.list_all()
    assert len(roster) == 23
    assert [l.order for l in roster] == list(range(1, 24))
    assert roster[0].leader_id == "pres"
    assert roster[-1].leader_id == "sus"
    assert not any(l.is_active for l in roster)


def test_reseed_keeps_clock_status():
    _, leaders, _, admin, clock = _setup()
    admin.seed_leaders()
    opened = clock.clock_in("treas", now=datetime(2026, 2, 4, 9, 0)).session

    admin.seed_leaders()

    treas = leaders.get_by_id("treas")
    assert treas.is_active
    assert treas.current_session_id == opened.session_id
    assert len(leaders.list_all()) == 23


def test_seed_publishes_leaders_snapshot():
    _, leaders, feed, admin, _ = _setup()
    seen = []
    feed.subscribe("leaders", leaders.list_all, seen.append)

    admin.seed_leaders()

    assert len(seen) == 2
    assert len(seen[-1]) == 23


def test_reset_deletes_everything_in_batches():
    db, leaders, _, admin, clock = _setup(batch_size=2)
    admin.seed_leaders()
    clock.clock_in("pres", now=datetime(2026, 2, 4, 9, 0))
    clock.clock_out("pres", now=datetime(2026, 2, 4, 10, 0))
    clock.clock_in("vp", now=datetime(2026, 2, 4, 9, 0))

    result = admin.reset()

    assert (result.leaders_deleted, result.sessions_deleted) == (23, 2)
    assert result.message == "Reset done. Deleted 23 leaders and 2 sessions."
    assert db.leaders == {} and db.sessions == {}


def test_reset_on_empty_store():
    _, _, _, admin, _ = _setup()

    result = admin.reset()

    assert (result.leaders_deleted, result.sessions_deleted) == (0, 0)


def test_invalid_roster_entry_is_rejected():
    db = InMemoryDatabase()
    admin = AdminService(
        InMemoryLeaderRepository(db),
        InMemorySessionRepository(db),
        roster=[Leader(leader_id=" ", role="Ghost")],
    )

    with pytest.raises(ValidationError):
        admin.seed_leaders()


def test_batch_size_must_be_positive():
    db = InMemoryDatabase()

    with pytest.raises(ValidationError):
        AdminService(InMemoryLeaderRepository(db), InMemorySessionRepository(db), batch_size=0)


def test_clock_in_during_seed_is_not_overwritten():
    db, leaders, _, admin, clock = _setup()
    admin.seed_leaders()
    original_upsert = leaders.upsert
    opened = {}

    def upsert_after_clock_in(leader):
        if leader.leader_id == "pres" and not opened:
            opened["session"] = clock.clock_in("pres", now=datetime(2026, 2, 4, 9, 0)).session
        original_upsert(leader)

    leaders.upsert = upsert_after_clock_in
    admin.seed_leaders()

    pres = leaders.get_by_id("pres")
    assert pres.is_active
    assert pres.current_session_id == opened["session"].session_id
    assert db.sessions[pres.current_session_id]["check_out_time"] is None


def test_upsert_refreshes_role_and_order_only():
    db, leaders, _, _, clock = _setup()
    leaders.upsert(Leader(leader_id="pres", role="Pres", order=9))
    opened = clock.clock_in("pres", now=datetime(2026, 2, 4, 9, 0)).session

    leaders.upsert(Leader(leader_id="pres", role="President", order=1))

    pres = leaders.get_by_id("pres")
    assert (pres.role, pres.order) == ("President", 1)
    assert pres.is_active
    assert pres.current_session_id == opened.session_id
