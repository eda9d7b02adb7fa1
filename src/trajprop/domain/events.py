# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagation lifecycle events.

The service produces these; delivering them to a bus is the job of a
PropagationEventSink adapter.
"""
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any

SOURCE_SERVICE = "propagation"


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True, kw_only=True)
class PropagationEvent:
    """Common envelope fields."""
    propagation_id: uuid.UUID
    spacecraft_id: str | None = None
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=_utc_now)
    source_service: str = SOURCE_SERVICE

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly payload (UUIDs and datetimes as strings)."""
        payload: dict[str, Any] = {"event_type": self.event_type}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            payload[f.name] = value
        return payload


@dataclass(frozen=True, kw_only=True)
class PropagationStarted(PropagationEvent):
    start_epoch: datetime
    end_epoch: datetime
    configuration_name: str | None = None


@dataclass(frozen=True, kw_only=True)
class PropagationCompleted(PropagationEvent):
    start_epoch: datetime
    end_epoch: datetime
    state_count: int
    step_count: int
    computation_time_ms: float
    was_successful: bool
    termination_reason: str


@dataclass(frozen=True, kw_only=True)
class PropagationFailed(PropagationEvent):
    error_message: str
    termination_reason: str
