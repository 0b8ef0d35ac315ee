"""In-process change feed.

Subscribers get the full current snapshot right away and a fresh full snapshot
after every publish on their topic. Each delivery replaces whatever the subscriber
cached before; nothing is sent as a delta.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from threading import Lock
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Loader = Callable[[], Any]
SnapshotHandler = Callable[[Any], None]


class Subscription:
    def __init__(self, feed: "ChangeFeed", topic: str, loader: Loader, callback: SnapshotHandler):
        self._feed = feed
        self.topic = topic
        self._loader = loader
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self) -> None:
        if not self._active:
            return
        self._callback(self._loader())

    def cancel(self) -> None:
        """Stop deliveries and release the subscription. Safe to call twice."""
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)


class ChangeFeed:
    """Topic-scoped pub/sub over snapshot loaders."""

    def __init__(self):
        self._subs: dict[str, list[Subscription]] = defaultdict(list)
        self._lock = Lock()

    def subscribe(self, topic: str, loader: Loader, callback: SnapshotHandler) -> Subscription:
        sub = Subscription(self, topic, loader, callback)
        with self._lock:
            self._subs[topic].append(sub)
        try:
            sub.deliver()
        except Exception:
            sub.cancel()
            raise
        logger.debug("Subscribed to %s", topic)
        return sub

    def publish(self, *topics: str) -> int:
        """Re-deliver snapshots to every subscriber of ``topics``; returns deliveries made."""
        with self._lock:
            targets = [sub for topic in topics for sub in self._subs.get(topic, ())]

        delivered = 0
        for sub in targets:
            try:
                sub.deliver()
                delivered += 1
            except Exception:
                logger.exception("Snapshot delivery failed for topic %s", sub.topic)
        return delivered

    def subscriber_count(self, topic: Optional[str] = None) -> int:
        with self._lock:
            if topic is not None:
                return len(self._subs.get(topic, ()))
            return sum(len(subs) for subs in self._subs.values())

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subs.get(sub.topic)
            if subs and sub in subs:
                subs.remove(sub)
                if not subs:
                    del self._subs[sub.topic]
