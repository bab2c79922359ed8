from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from memwatch.core.errors import MetricsUnavailableError
from memwatch.core.telemetry.resources import MemoryProbe, MemoryReading


SAMPLE_INTERVAL_SECONDS = 3.0


def format_memory_message(reading: MemoryReading) -> str:
    return f"Current memory usage: {reading.free_percent:.2f}%"


@dataclass
class SamplerStats:
    ticks_total: int = 0
    ticks_failed: int = 0
    ticks_skipped: int = 0


class MemorySampler:
    """
    Logs a memory reading every `interval_seconds` on a background thread.

    Ticks never overlap: a tick that overruns its slot causes the elapsed slots to be
    skipped (and counted) rather than queued. A failed tick is reported and the loop
    keeps going.
    """

    interval_seconds: float = SAMPLE_INTERVAL_SECONDS

    def __init__(
        self,
        *,
        event_logger: Any,
        probe: Optional[MemoryProbe] = None,
        error_reporter: Any = None,
        logger=None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.event_logger = event_logger
        self.probe = probe or MemoryProbe()
        self.error_reporter = error_reporter
        self.logger = logger
        self._clock = clock

        self._lock = threading.Lock()
        self._stats = SamplerStats()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> Optional[str]:
        """Take one reading and log it. Returns the logged message, or None if metrics were unavailable."""
        with self._lock:
            self._stats.ticks_total += 1
        try:
            reading = self.probe.read()
        except MetricsUnavailableError as e:
            self._record_failure(e)
            return None
        message = format_memory_message(reading)
        self.event_logger.log(message)
        return message

    def start(self) -> None:
        t = self._thread
        if t is not None and t.is_alive():
            if not self._stop.is_set():
                return
            # a stopped loop may still be inside a slow tick; let it finish first
            if t is not threading.current_thread():
                t.join()
        # fresh event per loop, so a restart can never revive an old loop
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, args=(self._stop,), name="memwatch-sampler", daemon=True)
        self._thread.start()
        if self.logger is not None:
            self.logger.info(f"Memory sampler started (every {self.interval_seconds:g}s)")

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        t = self._thread
        if t is not None and t.is_alive() and t is not threading.current_thread():
            t.join(timeout=max(0.1, float(timeout)))
        if t is not None and not t.is_alive():
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "running": self.is_running(),
                "interval_seconds": float(self.interval_seconds),
                "ticks_total": self._stats.ticks_total,
                "ticks_failed": self._stats.ticks_failed,
                "ticks_skipped": self._stats.ticks_skipped,
            }

    # -------- internal loop --------
    def _loop(self, stop: threading.Event) -> None:
        interval = float(self.interval_seconds)
        next_at = self._clock() + interval
        while not stop.wait(max(0.0, next_at - self._clock())):
            try:
                self.tick()
            except Exception as e:  # noqa: BLE001
                self._record_failure(e, subsystem="sampler.loop")
            next_at += interval
            now = self._clock()
            if now >= next_at:
                missed = int((now - next_at) // interval) + 1
                with self._lock:
                    self._stats.ticks_skipped += missed
                next_at += missed * interval

    def _record_failure(self, exc: BaseException, *, subsystem: str = "sampler") -> None:
        with self._lock:
            self._stats.ticks_failed += 1
        if self.error_reporter is not None:
            self.error_reporter.report_exception(exc, trace_id=uuid.uuid4().hex, subsystem=subsystem)
        elif self.logger is not None:
            self.logger.warning(f"Memory sample skipped: {exc}")
