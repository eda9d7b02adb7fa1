# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagation service: the outward-facing wrapper around the propagation loop.

Resolves the default configuration and times the run. It turns the loop's
outcome into a PropagationResult and emits lifecycle events to an optional
sink. Any exception raised while integrating, including one from the
acceleration provider, becomes a failed result. Configurations validate
themselves on construction, so nothing is checked again here.
"""
import asyncio
import logging
import threading
import time
import uuid
from datetime import datetime

from trajprop.domain.configuration import PropagationConfiguration, default_configuration
from trajprop.domain.events import (
    PropagationCompleted,
    PropagationEvent,
    PropagationFailed,
    PropagationStarted,
)
from trajprop.domain.propagation import CancellationSignal, propagate_trajectory
from trajprop.domain.result import PropagationResult, TerminationReason
from trajprop.domain.state import AccelerationProvider, PropagationState
from trajprop.ports.events import PropagationEventSink

logger = logging.getLogger(__name__)


class _EitherSignal:
    """Set when any of the wrapped signals is set."""

    def __init__(self, *signals: CancellationSignal) -> None:
        self._signals = signals

    def is_set(self) -> bool:
        return any(s.is_set() for s in self._signals)


class PropagationService:
    """
    Runs propagations and packages their outcomes.

    Instances hold no per-run state, so one service may serve concurrent
    propagations on separate threads as long as each call brings its own
    acceleration provider.

    Args:
        event_sink: Receives started/completed/failed events. None disables events.
        default_configuration: Used when a call passes no configuration.
            Defaults to the precise preset.
    """

    def __init__(
        self,
        event_sink: PropagationEventSink | None = None,
        default_configuration: PropagationConfiguration | None = None,
    ) -> None:
        self._event_sink = event_sink
        self._default_configuration = default_configuration

    def _resolve_configuration(
        self, configuration: PropagationConfiguration | None,
    ) -> PropagationConfiguration:
        if configuration is not None:
            return configuration
        if self._default_configuration is not None:
            return self._default_configuration
        return default_configuration()

    def _publish(self, event: PropagationEvent) -> None:
        if self._event_sink is not None:
            self._event_sink.publish(event)

    def propagate(
        self,
        initial_state: PropagationState,
        target_epoch: datetime,
        acceleration_provider: AccelerationProvider,
        configuration: PropagationConfiguration | None = None,
        cancellation: CancellationSignal | None = None,
        spacecraft_id: str | None = None,
    ) -> PropagationResult:
        """
        Propagate ``initial_state`` to ``target_epoch``.

        Returns:
            PropagationResult. Failures inside the loop are reported via
            ``was_successful=False`` and ``TerminationReason.INTEGRATION_ERROR``.
        """
        config = self._resolve_configuration(configuration)

        propagation_id = uuid.uuid4()
        self._publish(PropagationStarted(
            propagation_id=propagation_id,
            spacecraft_id=spacecraft_id,
            start_epoch=initial_state.epoch,
            end_epoch=target_epoch,
            configuration_name=config.name,
        ))

        started = time.perf_counter()
        try:
            run = propagate_trajectory(
                initial_state, target_epoch, acceleration_provider, config, cancellation,
            )
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000.0
            logger.exception("Propagation %s failed", propagation_id)
            message = str(exc) or type(exc).__name__
            result = PropagationResult.failed(
                start_epoch=initial_state.epoch,
                error_message=message,
                computation_time_ms=elapsed_ms,
                configuration_name=config.name,
                spacecraft_id=spacecraft_id,
                propagation_id=propagation_id,
            )
            self._publish(PropagationFailed(
                propagation_id=propagation_id,
                spacecraft_id=spacecraft_id,
                error_message=message,
                termination_reason=TerminationReason.INTEGRATION_ERROR.value,
            ))
            return result

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if run.termination_reason is TerminationReason.CANCELLED:
            result = PropagationResult.cancelled(
                states=run.states,
                step_count=run.step_count,
                rejected_step_count=run.rejected_step_count,
                computation_time_ms=elapsed_ms,
                end_epoch=run.end_epoch,
                configuration_name=config.name,
                spacecraft_id=spacecraft_id,
                propagation_id=propagation_id,
            )
        else:
            result = PropagationResult.successful(
                states=run.states,
                step_count=run.step_count,
                rejected_step_count=run.rejected_step_count,
                computation_time_ms=elapsed_ms,
                termination_reason=run.termination_reason,
                end_epoch=run.end_epoch,
                configuration_name=config.name,
                spacecraft_id=spacecraft_id,
                propagation_id=propagation_id,
            )

        self._publish(PropagationCompleted(
            propagation_id=propagation_id,
            spacecraft_id=spacecraft_id,
            start_epoch=result.start_epoch,
            end_epoch=result.end_epoch,
            state_count=len(result.states),
            step_count=result.step_count,
            computation_time_ms=result.computation_time_ms,
            was_successful=result.was_successful,
            termination_reason=result.termination_reason.value,
        ))
        return result

    async def propagate_async(
        self,
        initial_state: PropagationState,
        target_epoch: datetime,
        acceleration_provider: AccelerationProvider,
        configuration: PropagationConfiguration | None = None,
        cancellation: CancellationSignal | None = None,
        spacecraft_id: str | None = None,
    ) -> PropagationResult:
        """
        Run ``propagate`` on a worker thread without blocking the event loop.

        Cancelling the awaiting task raises the run's cancellation signal,
        so the worker stops at its next step boundary.
        """
        task_cancelled = threading.Event()
        signal: CancellationSignal = (
            task_cancelled if cancellation is None
            else _EitherSignal(cancellation, task_cancelled)
        )
        try:
            return await asyncio.to_thread(
                self.propagate,
                initial_state,
                target_epoch,
                acceleration_provider,
                configuration,
                signal,
                spacecraft_id,
            )
        except asyncio.CancelledError:
            task_cancelled.set()
            raise
