"""
Publisher: registered-subscriber lists per topic, invoked synchronously at publish points.
Delivery order per subscriber equals publish order. A failing subscriber is logged
and skipped; it never interrupts the simulation or other subscribers.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from .schemas import Topic

_log = logging.getLogger("season_sim.emitter")

Callback = Callable[[Topic, Any], None]


@dataclass(frozen=True)
class _Subscription:
    topic: Topic | None  # None = every topic
    league_id: str | None  # None = every league
    callback: Callback


class EventPublisher:
    """Fan-out point between the simulation core and transport layers (WebSocket, CLI)."""

    def __init__(self) -> None:
        self._subs: list[_Subscription] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        callback: Callback,
        topic: Topic | None = None,
        league_id: str | None = None,
    ) -> Callable[[], None]:
        """Register callback(topic, payload). Returns an unsubscribe function."""
        sub = _Subscription(topic=topic, league_id=league_id, callback=callback)
        with self._lock:
            self._subs.append(sub)

        def unsubscribe() -> None:
            with self._lock:
                if sub in self._subs:
                    self._subs.remove(sub)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, topic: Topic, league_id: str, payload: Any) -> None:
        with self._lock:
            targets = [
                s for s in self._subs
                if (s.topic is None or s.topic == topic) and (s.league_id is None or s.league_id == league_id)
            ]
        for sub in targets:
            try:
                sub.callback(topic, payload)
            except Exception:
                _log.warning("Subscriber failed on %s for league %s", topic.value, league_id, exc_info=True)
