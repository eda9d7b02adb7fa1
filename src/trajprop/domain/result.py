# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagation outcome types.

TerminationReason classifies why a run ended. Policy stops (end epoch,
step budget, altitude floor, duration cap) are successful completions;
INTEGRATION_ERROR is the only failure; CANCELLED is neither.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from trajprop.domain.state import PropagationState


class TerminationReason(Enum):
    """Why a propagation run stopped."""
    REACHED_END_EPOCH = "reached_end_epoch"
    REACHED_MAX_STEPS = "reached_max_steps"
    BELOW_MIN_ALTITUDE = "below_min_altitude"
    REACHED_MAX_DURATION = "reached_max_duration"
    INTEGRATION_ERROR = "integration_error"
    CANCELLED = "cancelled"

    @property
    def is_policy_stop(self) -> bool:
        return self in _POLICY_STOPS


_POLICY_STOPS = frozenset({
    TerminationReason.REACHED_END_EPOCH,
    TerminationReason.REACHED_MAX_STEPS,
    TerminationReason.BELOW_MIN_ALTITUDE,
    TerminationReason.REACHED_MAX_DURATION,
})


@dataclass(frozen=True)
class PropagationResult:
    """Immutable outcome of one propagation run."""
    start_epoch: datetime
    end_epoch: datetime
    states: tuple[PropagationState, ...]
    step_count: int
    rejected_step_count: int
    computation_time_ms: float
    termination_reason: TerminationReason
    was_successful: bool
    error_message: str | None = None
    configuration_name: str | None = None
    spacecraft_id: str | None = None
    propagation_id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def successful(
        cls,
        states: tuple[PropagationState, ...],
        step_count: int,
        rejected_step_count: int,
        computation_time_ms: float,
        termination_reason: TerminationReason,
        end_epoch: datetime | None = None,
        configuration_name: str | None = None,
        spacecraft_id: str | None = None,
        propagation_id: uuid.UUID | None = None,
    ) -> "PropagationResult":
        if not states:
            raise ValueError("A successful result needs at least the initial state")
        return cls(
            start_epoch=states[0].epoch,
            end_epoch=end_epoch if end_epoch is not None else states[-1].epoch,
            states=tuple(states),
            step_count=step_count,
            rejected_step_count=rejected_step_count,
            computation_time_ms=computation_time_ms,
            termination_reason=termination_reason,
            was_successful=True,
            configuration_name=configuration_name,
            spacecraft_id=spacecraft_id,
            propagation_id=propagation_id or uuid.uuid4(),
        )

    @classmethod
    def cancelled(
        cls,
        states: tuple[PropagationState, ...],
        step_count: int,
        rejected_step_count: int,
        computation_time_ms: float,
        end_epoch: datetime | None = None,
        configuration_name: str | None = None,
        spacecraft_id: str | None = None,
        propagation_id: uuid.UUID | None = None,
    ) -> "PropagationResult":
        """Run stopped by the caller; carries the states produced so far."""
        return cls(
            start_epoch=states[0].epoch,
            end_epoch=end_epoch if end_epoch is not None else states[-1].epoch,
            states=tuple(states),
            step_count=step_count,
            rejected_step_count=rejected_step_count,
            computation_time_ms=computation_time_ms,
            termination_reason=TerminationReason.CANCELLED,
            was_successful=False,
            error_message="Propagation cancelled",
            configuration_name=configuration_name,
            spacecraft_id=spacecraft_id,
            propagation_id=propagation_id or uuid.uuid4(),
        )

    @classmethod
    def failed(
        cls,
        start_epoch: datetime,
        error_message: str,
        computation_time_ms: float = 0.0,
        configuration_name: str | None = None,
        spacecraft_id: str | None = None,
        propagation_id: uuid.UUID | None = None,
    ) -> "PropagationResult":
        return cls(
            start_epoch=start_epoch,
            end_epoch=start_epoch,
            states=(),
            step_count=0,
            rejected_step_count=0,
            computation_time_ms=computation_time_ms,
            termination_reason=TerminationReason.INTEGRATION_ERROR,
            was_successful=False,
            error_message=error_message,
            configuration_name=configuration_name,
            spacecraft_id=spacecraft_id,
            propagation_id=propagation_id or uuid.uuid4(),
        )

    @property
    def final_state(self) -> PropagationState | None:
        return self.states[-1] if self.states else None

    @property
    def duration_s(self) -> float:
        return (self.end_epoch - self.start_epoch).total_seconds()

    @property
    def is_error(self) -> bool:
        return self.termination_reason is TerminationReason.INTEGRATION_ERROR
