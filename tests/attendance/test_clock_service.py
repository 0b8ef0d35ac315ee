from __future__ import annotations

import copy
from datetime import datetime

import pytest

from src.office_hours.office_hours.attendance.service import ClockService
from src.office_hours.office_hours.core.exceptions import (
    AlreadyActiveError,
    CorruptSessionError,
    NotActiveError,
    NotFoundError,
    ValidationError,
)
from src.office_hours.office_hours.database.memory_store import (
    InMemoryAttendanceTransaction,
    InMemoryAttendanceUnitOfWork,
    InMemoryDatabase,
    InMemoryLeaderRepository,
)
from src.office_hours.office_hours.leaders.model import Leader
from src.office_hours.office_hours.live.feed import ChangeFeed
from src.office_hours.office_hours.sessions.model import ClosedSession, OpenSession


def _setup(*leader_ids: str, clock=None):
    db = InMemoryDatabase(clock=clock)
    repo = InMemoryLeaderRepository(db)
    for i, leader_id in enumerate(leader_ids or ("pres",), start=1):
        repo.upsert(Leader(leader_id=leader_id, role=leader_id.upper(), order=i))
    return db, ClockService(InMemoryAttendanceUnitOfWork(db))


def _state(db: InMemoryDatabase):
    return copy.deepcopy(db.leaders), copy.deepcopy(db.sessions)


def _assert_active_matches_session(db: InMemoryDatabase):
    for leader_id, leader in db.leaders.items():
        open_refs = [
            s for s in db.sessions.values() if s["leader_id"] == leader_id and s["check_out_time"] is None
        ]
        if leader["is_active"]:
            assert len(open_refs) == 1
            assert leader["current_session_id"] == open_refs[0]["session_id"]
        else:
            assert open_refs == []
            assert leader["current_session_id"] is None


def test_clock_in_then_out_records_duration():
    db, svc = _setup("pres")

    result_in = svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))
    assert isinstance(result_in.session, OpenSession)
    assert db.leaders["pres"]["is_active"] is True
    assert db.leaders["pres"]["current_session_id"] == result_in.session.session_id

    result_out = svc.clock_out("pres", now=datetime(2026, 2, 2, 11, 30))
    closed = result_out.session
    assert isinstance(closed, ClosedSession)
    assert closed.duration_minutes == 150
    assert closed.auto_closed is False
    assert closed.exclude_from_totals is False
    assert closed.check_out_time == datetime(2026, 2, 2, 11, 30)

    row = db.sessions[closed.session_id]
    assert row["duration_minutes"] == 150
    assert db.leaders["pres"]["is_active"] is False
    assert db.leaders["pres"]["current_session_id"] is None
    _assert_active_matches_session(db)


def test_clock_in_uses_server_time_when_now_not_given():
    db, svc = _setup("pres", clock=lambda: datetime(2026, 2, 2, 8, 15, 0))

    result = svc.clock_in("pres")

    assert result.session.check_in_time == datetime(2026, 2, 2, 8, 15, 0)


def test_clock_in_when_already_active_changes_nothing():
    db, svc = _setup("pres")
    svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))
    before = _state(db)

    with pytest.raises(AlreadyActiveError):
        svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 5))

    assert _state(db) == before


def test_clock_out_when_not_active_changes_nothing():
    db, svc = _setup("pres")
    before = _state(db)

    with pytest.raises(NotActiveError):
        svc.clock_out("pres", now=datetime(2026, 2, 2, 9, 0))

    assert _state(db) == before


def test_unknown_leader_is_not_found():
    _, svc = _setup("pres")

    with pytest.raises(NotFoundError):
        svc.clock_in("nobody")
    with pytest.raises(NotFoundError):
        svc.clock_out("nobody")


def test_blank_leader_id_is_rejected():
    _, svc = _setup("pres")

    with pytest.raises(ValidationError):
        svc.clock_in("  ")


def test_clock_out_with_missing_session_is_not_found():
    db, svc = _setup("pres")
    svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))
    db.sessions.clear()
    before = _state(db)

    with pytest.raises(NotFoundError):
        svc.clock_out("pres", now=datetime(2026, 2, 2, 10, 0))

    assert _state(db) == before


def test_clock_out_with_session_missing_check_in_is_corrupt():
    db, svc = _setup("pres")
    result = svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))
    db.sessions[result.session.session_id]["check_in_time"] = None

    with pytest.raises(CorruptSessionError):
        svc.clock_out("pres", now=datetime(2026, 2, 2, 10, 0))

    assert db.leaders["pres"]["is_active"] is True


def test_clock_out_before_check_in_never_goes_negative():
    _, svc = _setup("pres")
    svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0, 30))

    result = svc.clock_out("pres", now=datetime(2026, 2, 2, 9, 0, 0))

    assert result.session.duration_minutes == 0


def test_duration_rounds_half_up():
    _, svc = _setup("pres", "vp")
    svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0, 0))
    svc.clock_in("vp", now=datetime(2026, 2, 2, 9, 0, 0))

    assert svc.clock_out("pres", now=datetime(2026, 2, 2, 9, 0, 30)).session.duration_minutes == 1
    assert svc.clock_out("vp", now=datetime(2026, 2, 2, 9, 0, 29)).session.duration_minutes == 0


def test_failed_leader_write_rolls_back_session(monkeypatch):
    db, svc = _setup("pres")

    def boom(self, leader):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(InMemoryAttendanceTransaction, "save_leader_status", boom)

    with pytest.raises(RuntimeError):
        svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))

    assert db.sessions == {}
    assert db.leaders["pres"]["is_active"] is False


def test_active_flag_tracks_session_across_a_day_of_activity():
    db, svc = _setup("pres", "vp", "treas")
    svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))
    svc.clock_in("vp", now=datetime(2026, 2, 2, 9, 10))
    _assert_active_matches_session(db)
    svc.clock_out("pres", now=datetime(2026, 2, 2, 10, 0))
    svc.clock_in("treas", now=datetime(2026, 2, 2, 10, 5))
    svc.clock_in("pres", now=datetime(2026, 2, 2, 13, 0))
    _assert_active_matches_session(db)
    svc.clock_out("vp", now=datetime(2026, 2, 2, 14, 0))
    _assert_active_matches_session(db)

    assert len(db.sessions) == 4


def test_clock_operations_publish_changes():
    db = InMemoryDatabase()
    InMemoryLeaderRepository(db).upsert(Leader(leader_id="pres", role="President", order=1))
    feed = ChangeFeed()
    svc = ClockService(InMemoryAttendanceUnitOfWork(db), feed=feed)
    snapshots = []
    feed.subscribe("leaders", lambda: [dict(r) for r in db.leaders.values()], snapshots.append)

    svc.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))

    assert len(snapshots) == 2
    assert snapshots[-1][0]["is_active"] is True
