from __future__ import annotations

import codecs
import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StampAt(str, Enum):
    EMIT = "emit"
    APPEND = "append"


class EventLogFileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = "./eventlog.txt"
    encoding: str = "utf-8"
    fsync: bool = True
    stamp_at: StampAt = StampAt.EMIT

    @field_validator("path")
    @classmethod
    def _non_empty_path(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v:
            raise ValueError("event_log.path required")
        return v

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, v: str) -> str:
        v = str(v or "").strip()
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {v!r}") from e
        return v


class EventBusConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    keep_recent: int = Field(default=100, ge=0, le=10_000)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    log_dir: str = "logs"
    level: str = "INFO"
    max_bytes: int = Field(default=1_000_000, ge=1024)
    backup_count: int = Field(default=5, ge=0, le=100)

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = str(v or "").strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v!r}")
        return v


class ErrorsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = os.path.join("logs", "errors.jsonl")
    include_tracebacks: bool = False


class MemwatchConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_log: EventLogFileConfig = Field(default_factory=EventLogFileConfig)
    event_bus: EventBusConfig = Field(default_factory=EventBusConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    errors: ErrorsConfig = Field(default_factory=ErrorsConfig)
