from __future__ import annotations

import os
import threading
from typing import Any

from memwatch.core.config.models import EventLogFileConfig, StampAt
from memwatch.core.errors import PersistenceWriteError
from memwatch.core.events.models import MessageEvent, iso_utc, utc_now


def format_line(timestamp: str, message: str) -> str:
    return f"{timestamp} - {message} \n"


class FileSink:
    """
    Appends one `<ISO-8601 UTC> - <message> ` line per message event to the event log.

    Every write is its own open/append/close; with `fsync` on, the call does not
    return before the data reached storage. Failures raise PersistenceWriteError.
    """

    def __init__(self, *, cfg: EventLogFileConfig | None = None):
        self.cfg = cfg or EventLogFileConfig()
        self.path = self.cfg.path
        self._lock = threading.Lock()
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)

    def __call__(self, event: Any) -> None:
        self.on_message(event)

    def on_message(self, event: Any) -> None:
        line = format_line(self._stamp(event), _message_of(event))
        try:
            with self._lock:
                with open(self.path, "a", encoding=self.cfg.encoding) as f:
                    f.write(line)
                    f.flush()
                    if self.cfg.fsync:
                        os.fsync(f.fileno())
        except (OSError, LookupError, UnicodeError) as e:
            raise PersistenceWriteError(path=self.path, error=str(e)) from e

    def _stamp(self, event: Any) -> str:
        if self.cfg.stamp_at == StampAt.EMIT and isinstance(event, MessageEvent):
            return iso_utc(event.timestamp)
        return iso_utc(utc_now())


def _message_of(event: Any) -> str:
    if isinstance(event, MessageEvent):
        return event.message
    if isinstance(event, dict) and "message" in event:
        return str(event["message"])
    return str(getattr(event, "message", event))
