# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for the propagation service: results, events, failures and async runs."""

import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from trajprop.adapters.event_sinks import RecordingEventSink
from trajprop.domain.configuration import (
    IntegratorKind,
    OutputMode,
    PropagationConfiguration,
    fast,
)
from trajprop.domain.errors import ConfigurationError
from trajprop.domain.events import (
    PropagationCompleted,
    PropagationFailed,
    PropagationStarted,
)
from trajprop.domain.force_models import two_body_provider
from trajprop.domain.orbital_mechanics import kepler_to_cartesian
from trajprop.domain.result import TerminationReason
from trajprop.domain.state import PropagationState
from trajprop.ports.events import PropagationEventSink
from trajprop.service import PropagationService

_EPOCH = datetime(2026, 3, 20, 12, 0, 0, tzinfo=timezone.utc)


def _circular_state() -> PropagationState:
    pos, vel = kepler_to_cartesian(7_000_000.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    return PropagationState(epoch=_EPOCH, position=pos, velocity=vel)


def _free_particle(epoch, state):
    return (0.0, 0.0, 0.0)


def _failing_provider(epoch, state):
    raise RuntimeError("ephemeris unavailable")


class TestSuccessfulRun:

    def test_result_and_events(self):
        sink = RecordingEventSink()
        service = PropagationService(event_sink=sink)
        result = service.propagate(
            _circular_state(), _EPOCH + timedelta(seconds=600), two_body_provider(),
            configuration=fast(), spacecraft_id="SAT-7",
        )
        assert result.was_successful
        assert result.termination_reason is TerminationReason.REACHED_END_EPOCH
        assert result.configuration_name == "Fast Propagation"
        assert result.spacecraft_id == "SAT-7"
        assert result.step_count == 10
        assert len(result.states) == 11
        assert result.computation_time_ms >= 0.0

        started, completed = sink.events
        assert isinstance(started, PropagationStarted)
        assert isinstance(completed, PropagationCompleted)
        assert started.propagation_id == result.propagation_id
        assert completed.propagation_id == result.propagation_id
        assert started.spacecraft_id == "SAT-7"
        assert started.configuration_name == "Fast Propagation"
        assert completed.state_count == 11
        assert completed.was_successful
        assert completed.termination_reason == "reached_end_epoch"

    def test_no_sink(self):
        result = PropagationService().propagate(
            _circular_state(), _EPOCH + timedelta(seconds=120), two_body_provider(),
            configuration=fast(),
        )
        assert result.was_successful

    def test_service_default_configuration(self):
        config = PropagationConfiguration(
            name="Service Default", integrator=IntegratorKind.RUNGE_KUTTA_4,
            initial_step_s=30.0, max_step_s=30.0, output_mode=OutputMode.START_AND_END,
        )
        service = PropagationService(default_configuration=config)
        result = service.propagate(_circular_state(), _EPOCH + timedelta(seconds=300), two_body_provider())
        assert result.configuration_name == "Service Default"
        assert result.step_count == 10
        assert len(result.states) == 2

    def test_global_default_configuration(self):
        result = PropagationService().propagate(
            _circular_state(), _EPOCH + timedelta(seconds=120), two_body_provider(),
        )
        assert result.configuration_name == "Precise Propagation"

    def test_step_budget_is_successful_stop(self):
        config = PropagationConfiguration(
            integrator=IntegratorKind.RUNGE_KUTTA_4, max_step_s=60.0, max_step_count=3,
        )
        result = PropagationService().propagate(
            _circular_state(), _EPOCH + timedelta(seconds=3600), two_body_provider(), config,
        )
        assert result.was_successful
        assert result.termination_reason is TerminationReason.REACHED_MAX_STEPS
        assert result.end_epoch == _EPOCH + timedelta(seconds=180)


class TestFailedRun:

    def test_provider_exception_becomes_failed_result(self, caplog):
        sink = RecordingEventSink()
        service = PropagationService(event_sink=sink)
        with caplog.at_level(logging.ERROR, logger="trajprop.service"):
            result = service.propagate(
                _circular_state(), _EPOCH + timedelta(seconds=600), _failing_provider,
                configuration=fast(),
            )
        assert not result.was_successful
        assert result.is_error
        assert result.termination_reason is TerminationReason.INTEGRATION_ERROR
        assert result.error_message == "ephemeris unavailable"
        assert result.states == ()
        assert result.end_epoch == _EPOCH
        assert "failed" in caplog.text

        started, failed = sink.events
        assert isinstance(started, PropagationStarted)
        assert isinstance(failed, PropagationFailed)
        assert failed.error_message == "ephemeris unavailable"
        assert failed.termination_reason == "integration_error"
        assert failed.propagation_id == result.propagation_id

    def test_message_falls_back_to_exception_type(self):
        def provider(epoch, state):
            raise ZeroDivisionError()

        result = PropagationService().propagate(
            _circular_state(), _EPOCH + timedelta(seconds=600), provider, configuration=fast(),
        )
        assert result.error_message == "ZeroDivisionError"

    def test_non_finite_state_is_failure(self):
        def provider(epoch, state):
            return (float("inf"), 0.0, 0.0)

        result = PropagationService().propagate(
            _circular_state(), _EPOCH + timedelta(seconds=600), provider, configuration=fast(),
        )
        assert result.is_error
        assert "Non-finite" in result.error_message

    def test_provider_configuration_error_becomes_failed_result(self):
        def provider(epoch, state):
            raise ConfigurationError("force model misconfigured")

        sink = RecordingEventSink()
        result = PropagationService(event_sink=sink).propagate(
            _circular_state(), _EPOCH + timedelta(seconds=600), provider, configuration=fast(),
        )
        assert result.is_error
        assert result.termination_reason is TerminationReason.INTEGRATION_ERROR
        assert result.error_message == "force model misconfigured"
        assert len(sink.of_type(PropagationFailed)) == 1

    def test_invalid_configuration_fails_before_service(self):
        with pytest.raises(ConfigurationError):
            PropagationConfiguration(min_step_s=10.0, max_step_s=1.0)


class TestCancellation:

    def test_cancelled_result(self):
        cancel = threading.Event()
        cancel.set()
        sink = RecordingEventSink()
        result = PropagationService(event_sink=sink).propagate(
            _circular_state(), _EPOCH + timedelta(seconds=600), two_body_provider(),
            configuration=fast(), cancellation=cancel,
        )
        assert result.termination_reason is TerminationReason.CANCELLED
        assert not result.was_successful
        assert not result.is_error
        assert len(result.states) == 1
        completed = sink.of_type(PropagationCompleted)
        assert len(completed) == 1
        assert completed[0].termination_reason == "cancelled"
        assert not completed[0].was_successful


class TestAsync:

    def test_propagate_async(self):
        service = PropagationService()
        result = asyncio.run(service.propagate_async(
            _circular_state(), _EPOCH + timedelta(seconds=600), two_body_provider(),
            configuration=fast(),
        ))
        assert result.was_successful
        assert len(result.states) == 11

    def test_propagate_async_honours_external_signal(self):
        cancel = threading.Event()
        cancel.set()
        result = asyncio.run(PropagationService().propagate_async(
            _circular_state(), _EPOCH + timedelta(seconds=600), two_body_provider(),
            configuration=fast(), cancellation=cancel,
        ))
        assert result.termination_reason is TerminationReason.CANCELLED

    def test_cancelling_task_stops_worker(self):
        started = threading.Event()
        sink = RecordingEventSink()

        def slow_provider(epoch, state):
            started.set()
            time.sleep(0.001)
            return (0.0, 0.0, 0.0)

        async def scenario():
            service = PropagationService(event_sink=sink)
            config = PropagationConfiguration(
                integrator=IntegratorKind.RUNGE_KUTTA_4, initial_step_s=1.0, max_step_s=1.0,
                output_mode=OutputMode.START_AND_END,
            )
            task = asyncio.create_task(service.propagate_async(
                _circular_state(), _EPOCH + timedelta(days=30), slow_provider, config,
            ))
            while not started.is_set():
                await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        # asyncio.run waits for the worker thread on shutdown; it must have stopped.
        completed = sink.of_type(PropagationCompleted)
        assert len(completed) == 1
        assert completed[0].termination_reason == "cancelled"


class TestConcurrency:

    def test_parallel_runs_are_independent(self):
        service = PropagationService()
        target = _EPOCH + timedelta(seconds=1800)

        def run_one(_):
            return service.propagate(_circular_state(), target, two_body_provider(), fast())

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(run_one, range(4)))
        assert all(r.was_successful for r in results)
        finals = {r.final_state.position for r in results}
        assert len(finals) == 1
        assert len({r.propagation_id for r in results}) == 4


class TestEventSinkPort:

    def test_recording_sink_conforms(self):
        assert isinstance(RecordingEventSink(), PropagationEventSink)
