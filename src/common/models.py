from __future__ import annotations

import math
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_SOURCE = "frontend/login_demo"
DEFAULT_LABEL = "login_flow_test"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_number(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def _field(value: Any, name: str) -> Any:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


class Decision(str, Enum):
    """Decision tier derived from a risk reading. Never persisted."""

    BLOCK = "block"
    WARN_ELEVATED = "warn_elevated"
    WARN_LOW_CONFIDENCE = "warn_low_confidence"
    ALLOW = "allow"


class RiskReading(BaseModel):
    """Latest (score, confidence) pair from the signal source.

    Values are nominally in [0, 1] but the producer does not guarantee it, so
    nothing here clamps. Clamping is a display concern only.
    """

    model_config = ConfigDict(frozen=True)

    score: float = 0.0
    confidence: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> RiskReading:
        """Build a reading from a mapping, an object or None. Never raises."""

        if isinstance(value, RiskReading):
            return value
        return cls(
            score=_as_number(_field(value, "score")),
            confidence=_as_number(_field(value, "confidence")),
        )


class LoginAttemptEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    event: Literal["login_attempt"] = "login_attempt"
    label: str = Field(DEFAULT_LABEL, min_length=1)
    risk: RiskReading
    timestamp: datetime = Field(default_factory=utcnow, description="Client-side UTC time of the attempt")

    @field_validator("timestamp")
    @classmethod
    def _timestamp_must_be_tz_aware_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            raise ValueError("timestamp must be timezone-aware (UTC)")
        return value.astimezone(timezone.utc)


class EventBatch(BaseModel):
    """One outbound batch per submit. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    batch_id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="batchId", min_length=1)
    source: str = DEFAULT_SOURCE
    entries: tuple[LoginAttemptEvent, ...] = Field(..., min_length=1)

    def to_json_bytes(self) -> bytes:
        # Non-finite floats serialize as null.
        return self.model_dump_json(by_alias=True).encode("utf-8")


def new_login_batch(
    reading: RiskReading,
    *,
    label: str = DEFAULT_LABEL,
    source: str = DEFAULT_SOURCE,
    now: datetime | None = None,
) -> EventBatch:
    event = LoginAttemptEvent(label=label, risk=reading, timestamp=now or utcnow())
    return EventBatch(source=source, entries=(event,))
