from __future__ import annotations

import pytest

import config.testing as testing_settings

from src.office_hours.office_hours.container import build_container
from src.office_hours.office_hours.core.constants import DASHBOARD_TICK_SECONDS
from src.office_hours.office_hours.main import create_app


@pytest.fixture()
def container():
    return build_container(backend="memory", batch_size=2)


@pytest.fixture()
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(
        {
            "SECRET_KEY": "test",
            "STORE_BACKEND": "memory",
            "AUTO_INIT_DB": False,
            "AUTO_SEED_DB": True,
            "SWEEP_ON_START": False,
            "DASHBOARD_TICK_SECONDS": 0.01,
            "LOG_LEVEL": "WARNING",
        },
        container=container,
    )
    return app.test_client()


def test_index_redirects_to_kiosk(client):
    resp = client.get("/")

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/kiosk")


def test_kiosk_lists_seeded_roster(client):
    resp = client.get("/kiosk")

    assert resp.status_code == 200
    assert b"President" in resp.data
    assert b"Officer of Sustainability" in resp.data


def test_kiosk_clock_in_flashes_result(client, container):
    resp = client.post("/kiosk/pres/clock-in", follow_redirects=True)

    assert resp.status_code == 200
    assert b"pres clocked in" in resp.data
    assert container.leaders_repo.get_by_id("pres").is_active


def test_kiosk_duplicate_clock_in_flashes_warning(client):
    client.post("/kiosk/pres/clock-in")
    resp = client.post("/kiosk/pres/clock-in", follow_redirects=True)

    assert b"pres is already clocked in." in resp.data


def test_api_leaders_returns_cards(client):
    data = client.get("/api/leaders").get_json()

    assert data["success"] is True
    assert len(data["leaders"]) == 23
    assert data["leaders"][0] == {
        "id": "pres",
        "name": "President",
        "order": 1,
        "is_active": False,
        "status": "Out",
    }


def test_api_clock_in_and_out(client):
    resp = client.post("/api/leaders/vp/clock-in")
    assert resp.status_code == 200
    assert resp.get_json()["message"] == "vp clocked in"

    again = client.post("/api/leaders/vp/clock-in")
    assert again.status_code == 409
    assert again.get_json()["error"] == "AlreadyActive"

    out = client.post("/api/leaders/vp/clock-out")
    assert out.status_code == 200
    body = out.get_json()
    assert body["message"] == "vp clocked out"
    assert body["duration_minutes"] == 0


def test_api_clock_out_when_not_in(client):
    resp = client.post("/api/leaders/vp/clock-out")

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "NotActive"


def test_api_unknown_leader_is_404(client):
    resp = client.post("/api/leaders/nobody/clock-in")

    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "error": "NotFound", "message": "nobody not found."}


def test_api_dashboard_shows_who_is_in(client):
    client.post("/api/leaders/treas/clock-in")

    data = client.get("/api/dashboard").get_json()

    assert data["success"] is True
    assert [r["leader_id"] for r in data["in_office"]] == ["treas"]
    treas = next(r for r in data["totals"] if r["leader_id"] == "treas")
    assert treas["status"] == "In office"


def test_dashboard_page_renders(client):
    resp = client.get("/dashboard")

    assert resp.status_code == 200
    assert b"President" in resp.data


def test_dashboard_csv_export(client):
    resp = client.get("/dashboard/report.csv")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "attachment" in resp.headers["Content-Disposition"]
    text = resp.data.decode("utf-8-sig")
    lines = text.strip().splitlines()
    assert lines[0] == "leader_id,leader,today_minutes,week_minutes,today,this_week,status"
    assert len(lines) == 24
    assert lines[1].startswith("pres,President,")


def test_admin_page_renders(client):
    assert client.get("/admin").status_code == 200


def test_admin_reset_then_seed_json(client, container):
    client.post("/api/leaders/pres/clock-in")

    reset = client.post("/admin/reset", json={})
    assert reset.status_code == 200
    assert reset.get_json()["leaders_deleted"] == 23
    assert reset.get_json()["sessions_deleted"] == 1
    assert container.leaders_repo.list_all() == []

    seed = client.post("/admin/seed", headers={"Accept": "application/json"})
    assert seed.get_json()["message"] == "Seed done. Added 23 leaders."
    assert len(container.leaders_repo.list_all()) == 23


def test_admin_seed_form_redirects_with_flash(client):
    resp = client.post("/admin/seed", follow_redirects=True)

    assert resp.status_code == 200
    assert b"Seed done. Added 23 leaders." in resp.data


def test_admin_sweep_json(client):
    resp = client.post("/admin/sweep", json={})

    body = resp.get_json()
    assert body["success"] is True
    assert body["closed_session_ids"] == []


def test_dashboard_stream_releases_subscriptions_on_disconnect(client, container):
    client.post("/api/leaders/pres/clock-in")

    resp = client.get("/api/dashboard/stream")
    assert resp.mimetype == "text/event-stream"
    first = next(iter(resp.response))
    assert first.startswith(b"data: ")
    assert b'"leader_id": "pres"' in first
    assert container.feed.subscriber_count() == 3

    resp.close()

    assert container.feed.subscriber_count() == 0


def test_tick_interval_defaults_to_one_second(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.delattr(testing_settings, "DASHBOARD_TICK_SECONDS")

    app = create_app({"SECRET_KEY": "test", "SWEEP_ON_START": False}, container=container)

    assert app.config["DASHBOARD_TICK_SECONDS"] == DASHBOARD_TICK_SECONDS == 1.0
