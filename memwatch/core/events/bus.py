from __future__ import annotations

import collections
import itertools
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from memwatch.core.config.models import EventBusConfig
from memwatch.core.errors import DispatchSubscriberError, InvalidEventKindError
from memwatch.core.events.registry import is_valid_kind
from memwatch.core.events.stats import StatsCounter


Handler = Callable[[Any], None]


@dataclass(frozen=True)
class SubscriptionHandle:
    subscription_id: int
    kind: str


@dataclass
class _Sub:
    handle: SubscriptionHandle
    handler: Handler


class EventBus:
    """
    In-process synchronous publish/subscribe bus.

    - publish runs every handler subscribed to the kind, in subscription order,
      on the caller's thread, and returns once all of them have run
    - handler failures are isolated: reported, counted, never re-raised
    - publishes are serialized, so handlers of two publishes never interleave
    """

    def __init__(self, *, cfg: Optional[EventBusConfig] = None, logger=None, error_reporter=None):
        self.cfg = cfg or EventBusConfig()
        self.logger = logger
        self.error_reporter = error_reporter

        self._lock = threading.Lock()
        # re-entrant so a handler may publish from inside a dispatch
        self._dispatch_lock = threading.RLock()
        self._subs: Dict[str, List[_Sub]] = {}
        self._ids = itertools.count(1)
        self._stats = StatsCounter()
        self._recent: Deque[Dict[str, Any]] = collections.deque(maxlen=max(1, int(self.cfg.keep_recent)))

    def enabled(self) -> bool:
        return bool(self.cfg.enabled)

    def set_enabled(self, enabled: bool) -> None:
        self.cfg.enabled = bool(enabled)

    def subscribe(self, kind: str, handler: Handler) -> SubscriptionHandle:
        if not is_valid_kind(kind):
            raise InvalidEventKindError(kind=repr(kind))
        if not callable(handler):
            raise ValueError("handler must be callable")
        with self._lock:
            handle = SubscriptionHandle(subscription_id=next(self._ids), kind=kind)
            # copy-on-write: an in-flight publish keeps iterating its own snapshot
            self._subs[kind] = [*self._subs.get(kind, []), _Sub(handle=handle, handler=handler)]
            self._stats.set_subscribers(self._count_subs())
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        with self._lock:
            subs = self._subs.get(handle.kind, [])
            keep = [s for s in subs if s.handle != handle]
            if len(keep) == len(subs):
                return False
            if keep:
                self._subs[handle.kind] = keep
            else:
                self._subs.pop(handle.kind, None)
            self._stats.set_subscribers(self._count_subs())
        return True

    def publish(self, kind: str, payload: Any) -> int:
        """Deliver `payload` to every subscriber of `kind`; returns the number of successful deliveries."""
        if not self.enabled():
            return 0
        with self._dispatch_lock:
            with self._lock:
                subs = self._subs.get(kind, [])
                self._stats.inc_published(kind)
                if self._recent.maxlen and self.cfg.keep_recent:
                    self._recent.appendleft({"kind": kind, "ts": time.time(), "subscribers": len(subs)})
            delivered = 0
            for s in subs:
                if self._safe_handle(s, kind, payload):
                    delivered += 1
            if delivered:
                self._stats.inc_delivered(delivered)
            return delivered

    def get_stats(self) -> Dict[str, Any]:
        st = self._stats.snapshot()
        with self._lock:
            recent = list(self._recent)[:50]
        return {
            "enabled": self.enabled(),
            "published_total": st.published_total,
            "delivered_total": st.delivered_total,
            "handler_errors_total": st.handler_errors_total,
            "subscribers": st.subscribers,
            "per_kind_published": st.per_kind_published,
            "recent": recent,
        }

    def list_subscribers(self) -> List[Dict[str, Any]]:
        with self._lock:
            subs = [s for kind_subs in self._subs.values() for s in kind_subs]
        subs.sort(key=lambda s: s.handle.subscription_id)
        return [{"kind": s.handle.kind, "subscription_id": s.handle.subscription_id, "handler": _handler_name(s.handler)} for s in subs]

    def clear(self) -> None:
        with self._lock:
            self._subs = {}
            self._stats.set_subscribers(0)

    # ---- internals ----
    def _count_subs(self) -> int:
        return sum(len(v) for v in self._subs.values())

    def _safe_handle(self, sub: _Sub, kind: str, payload: Any) -> bool:
        try:
            sub.handler(payload)
            return True
        except Exception as e:  # noqa: BLE001
            self._stats.inc_handler_error(1)
            trace_id = str(getattr(payload, "trace_id", None) or "eventbus")
            name = _handler_name(sub.handler)
            if self.error_reporter is not None:
                self.error_reporter.write_error(
                    DispatchSubscriberError(kind=kind, handler=name, cause=type(e).__name__, detail=str(e)[:500]),
                    trace_id=trace_id,
                    subsystem="events",
                    internal_exc=e,
                )
            elif self.logger is not None:
                self.logger.warning(f"Subscriber {name} failed on {kind!r}: {e}")
            return False


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None) or type(handler).__name__
