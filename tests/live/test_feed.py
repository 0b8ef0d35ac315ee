from __future__ import annotations

import pytest

from src.office_hours.office_hours.live.feed import ChangeFeed


def test_subscribe_delivers_initial_snapshot():
    feed = ChangeFeed()
    state = {"value": [1, 2]}
    seen = []

    feed.subscribe("leaders", lambda: list(state["value"]), seen.append)

    assert seen == [[1, 2]]
    assert feed.subscriber_count("leaders") == 1


def test_publish_replaces_snapshot_for_topic_subscribers_only():
    feed = ChangeFeed()
    state = {"leaders": ["a"], "sessions": ["s1"]}
    leaders_seen, sessions_seen = [], []
    feed.subscribe("leaders", lambda: list(state["leaders"]), leaders_seen.append)
    feed.subscribe("sessions", lambda: list(state["sessions"]), sessions_seen.append)

    state["leaders"] = ["a", "b"]
    delivered = feed.publish("leaders")

    assert delivered == 1
    assert leaders_seen == [["a"], ["a", "b"]]
    assert sessions_seen == [["s1"]]


def test_cancel_stops_deliveries_and_is_idempotent():
    feed = ChangeFeed()
    seen = []
    sub = feed.subscribe("leaders", lambda: "snap", seen.append)

    sub.cancel()
    sub.cancel()
    feed.publish("leaders")

    assert not sub.active
    assert seen == ["snap"]
    assert feed.subscriber_count() == 0


def test_failing_initial_load_does_not_leave_a_subscription():
    feed = ChangeFeed()

    def boom():
        raise RuntimeError("store unavailable")

    with pytest.raises(RuntimeError):
        feed.subscribe("sessions", boom, lambda _: None)

    assert feed.subscriber_count() == 0


def test_failing_subscriber_does_not_block_others():
    feed = ChangeFeed()
    calls = {"n": 0}
    seen = []

    def flaky(_snapshot):
        calls["n"] += 1
        if calls["n"] > 1:
            raise ValueError("render failed")

    feed.subscribe("leaders", lambda: "snap", flaky)
    feed.subscribe("leaders", lambda: "snap", seen.append)

    assert feed.publish("leaders") == 1
    assert seen == ["snap", "snap"]
