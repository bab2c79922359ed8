from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_utc(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. `2024-05-01T09:30:00.125Z`."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


class MessageEvent(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    message: str
    timestamp: datetime = Field(default_factory=utc_now)
    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    trace_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    @field_validator("message", mode="before")
    @classmethod
    def _as_text(cls, v: object) -> str:
        if v is None:
            raise ValueError("message required")
        return str(v)
