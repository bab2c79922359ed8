from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class EventBusStats:
    published_total: int = 0
    delivered_total: int = 0
    handler_errors_total: int = 0
    subscribers: int = 0
    per_kind_published: Dict[str, int] = field(default_factory=dict)


class StatsCounter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats = EventBusStats()

    def snapshot(self) -> EventBusStats:
        with self._lock:
            s = self._stats
            return EventBusStats(
                published_total=s.published_total,
                delivered_total=s.delivered_total,
                handler_errors_total=s.handler_errors_total,
                subscribers=s.subscribers,
                per_kind_published=dict(s.per_kind_published),
            )

    def inc_published(self, kind: str) -> None:
        with self._lock:
            self._stats.published_total += 1
            self._stats.per_kind_published[kind] = int(self._stats.per_kind_published.get(kind, 0) + 1)

    def inc_delivered(self, n: int = 1) -> None:
        with self._lock:
            self._stats.delivered_total += int(n)

    def inc_handler_error(self, n: int = 1) -> None:
        with self._lock:
            self._stats.handler_errors_total += int(n)

    def set_subscribers(self, n: int) -> None:
        with self._lock:
            self._stats.subscribers = int(n)
