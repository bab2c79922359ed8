from __future__ import annotations

import sys
from typing import Optional, TextIO

from memwatch.core.events.bus import EventBus
from memwatch.core.events.models import MessageEvent
from memwatch.core.events.registry import MESSAGE


class EventLogger:
    """
    Prints each message to stdout, then publishes it on the bus as a `message` event.

    The bus is injected; subscriber failures are handled by the bus and never
    surface here.
    """

    def __init__(self, bus: EventBus, *, stream: Optional[TextIO] = None):
        self.bus = bus
        self.stream = stream

    def log(self, message: str) -> MessageEvent:
        event = MessageEvent(message=message)
        # resolved per call so a redirected sys.stdout is honoured
        print(event.message, file=self.stream or sys.stdout, flush=True)
        self.bus.publish(MESSAGE, event)
        return event
