"""
Internal publish/subscribe bus and the message pipeline built on it.

EventLogger -> EventBus.publish("message") -> FileSink.on_message -> event log file.
"""

from memwatch.core.events.bus import EventBus, SubscriptionHandle
from memwatch.core.events.logger import EventLogger
from memwatch.core.events.models import MessageEvent, iso_utc
from memwatch.core.events.registry import MESSAGE
from memwatch.core.events.subscribers import FileSink, format_line

__all__ = [
    "EventBus",
    "SubscriptionHandle",
    "EventLogger",
    "MessageEvent",
    "iso_utc",
    "MESSAGE",
    "FileSink",
    "format_line",
]
