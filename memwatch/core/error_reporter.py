from __future__ import annotations

import json
import os
import threading
import time
import traceback
from dataclasses import dataclass
from typing import Any, Dict, Optional

from memwatch.core.errors import (
    ConfigError,
    DispatchSubscriberError,
    MemwatchError,
    MetricsUnavailableError,
    PersistenceWriteError,
)


@dataclass
class ErrorReporterConfig:
    include_tracebacks: bool = False


class ErrorReporter:
    """
    Diagnostics channel for isolated failures.

    Errors go to a JSON-lines file that is never the event log itself, and a one-line
    summary is mirrored to the diagnostics logger when one is attached.
    """

    def __init__(self, *, path: str = os.path.join("logs", "errors.jsonl"), cfg: Optional[ErrorReporterConfig] = None, logger=None):
        self.path = path
        self.cfg = cfg or ErrorReporterConfig()
        self.logger = logger
        self._lock = threading.Lock()
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)

    def report_exception(self, exc: BaseException, *, trace_id: str, subsystem: str, context: Optional[Dict[str, Any]] = None) -> MemwatchError:
        me = normalize_exception(exc, subsystem=subsystem, context=context or {})
        self.write_error(me, trace_id=trace_id, subsystem=subsystem, internal_exc=exc)
        return me

    def write_error(self, err: MemwatchError, *, trace_id: str, subsystem: str, internal_exc: Optional[BaseException] = None) -> None:
        entry: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "trace_id": trace_id,
            "subsystem": subsystem,
            "error_code": err.code,
            "severity": err.severity.value,
            "recoverable": bool(err.recoverable),
            "user_message": err.user_message,
            "safe_context": _jsonable(err.context or {}),
        }
        if self.cfg.include_tracebacks and internal_exc is not None:
            entry["internal_context"] = {
                "traceback": "".join(traceback.format_exception(type(internal_exc), internal_exc, internal_exc.__traceback__, limit=30)),
            }
        line = json.dumps(entry, ensure_ascii=False)
        try:
            with self._lock:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
        except OSError as e:
            # the diagnostics file itself is broken; the logger is all that is left
            if self.logger is not None:
                self.logger.error(f"Error report could not be written to {self.path}: {e}")
        if self.logger is not None:
            self.logger.warning(f"[{subsystem}] {err.code}: {err.user_message} (trace_id={trace_id})")

    def tail(self, n: int = 20) -> list[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = f.readlines()
            return [json.loads(x) for x in lines[-max(1, int(n)) :]]
        except (OSError, ValueError):
            return []

    def by_trace_id(self, trace_id: str) -> list[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        out = []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for line in f:
                    try:
                        obj = json.loads(line)
                    except ValueError:
                        continue
                    if obj.get("trace_id") == trace_id:
                        out.append(obj)
        except OSError:
            return []
        return out


def normalize_exception(exc: BaseException, *, subsystem: str, context: Dict[str, Any]) -> MemwatchError:
    # Passthrough
    if isinstance(exc, MemwatchError):
        return exc

    # context goes in after construction: its keys may shadow constructor arguments
    ctx = {**dict(context or {}), "error": str(exc)}

    if subsystem == "config":
        err: MemwatchError = ConfigError("Configuration error.")
    elif subsystem == "sink":
        err = PersistenceWriteError()
    elif subsystem == "sampler":
        err = MetricsUnavailableError()
    elif subsystem == "events":
        err = DispatchSubscriberError()
    else:
        # Generic safe error
        return MemwatchError(code="unknown_error", user_message="Something went wrong.", context=ctx)
    err.context = ctx
    return err


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(x) for x in obj]
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
