from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class MemwatchError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


# ---- Core types ----
class ConfigError(MemwatchError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class InvalidEventKindError(MemwatchError):
    def __init__(self, user_message: str = "Invalid event kind.", **ctx: Any):
        super().__init__("invalid_event_kind", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class DispatchSubscriberError(MemwatchError):
    def __init__(self, user_message: str = "Event subscriber failed.", **ctx: Any):
        super().__init__("dispatch_subscriber_failure", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class PersistenceWriteError(MemwatchError):
    def __init__(self, user_message: str = "Could not append to the event log.", **ctx: Any):
        super().__init__("persistence_write_failure", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class MetricsUnavailableError(MemwatchError):
    def __init__(self, user_message: str = "Host memory metrics are unavailable.", **ctx: Any):
        super().__init__("metrics_unavailable", user_message, severity=Severity.WARN, recoverable=True, context=ctx)
