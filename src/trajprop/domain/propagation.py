# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagation loop: drives an integrator from an initial state to a target epoch.

Each iteration, in order:

1. stop if the cancellation signal is set (CANCELLED)
2. stop if the attempted-step budget is spent (REACHED_MAX_STEPS)
3. stop if the current altitude is below the floor (BELOW_MIN_ALTITUDE)
4. stop if the remaining time is effectively zero (REACHED_END_EPOCH,
   or REACHED_MAX_DURATION when a duration cap shortened the run)
5. clamp the candidate step so it cannot overshoot the end epoch
6. take one integrator step and count it
7. for adaptive integrators, reject and retry with a smaller step when the
   error estimate exceeds the tolerance; otherwise accept and adapt the
   next step
8. record output according to the output mode

Loop bookkeeping is carried in an immutable _LoopState that each
iteration replaces. Time is tracked as float seconds elapsed since the
start epoch; state epochs are derived from that clock, so their
microsecond resolution never feeds back into the step arithmetic. The loop is synchronous and single-threaded; the
cancellation signal is polled once per attempted step.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable

from trajprop.domain.configuration import (
    END_EPOCH_EPSILON_S,
    OutputMode,
    PropagationConfiguration,
    default_configuration,
)
from trajprop.domain.errors import IntegrationError
from trajprop.domain.integrators import Integrator, create_integrator
from trajprop.domain.result import TerminationReason
from trajprop.domain.sampling import FixedIntervalSchedule
from trajprop.domain.state import (
    AccelerationProvider,
    DerivativeFunction,
    PropagationState,
    make_derivative_function,
)
from trajprop.domain.step_control import (
    compute_new_step_size,
    should_reject_step,
    step_tolerance,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class CancellationSignal(Protocol):
    """Anything with ``is_set()``; ``threading.Event`` qualifies."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class PropagationRun:
    """Raw outcome of the loop, before the service adds timing and ids."""
    states: tuple[PropagationState, ...]
    final_state: PropagationState
    step_count: int
    rejected_step_count: int
    forced_accept_count: int
    termination_reason: TerminationReason

    @property
    def end_epoch(self) -> datetime:
        return self.final_state.epoch


@dataclass(frozen=True)
class _LoopState:
    current: PropagationState
    step_s: float
    elapsed_s: float = 0.0
    step_count: int = 0
    rejected_step_count: int = 0
    forced_accept_count: int = 0
    schedule: FixedIntervalSchedule | None = None


def _effective_end_epoch(
    start: datetime,
    target: datetime,
    direction: float,
    max_duration_s: float | None,
) -> tuple[datetime, bool]:
    """End epoch after applying the optional duration cap.

    Returns:
        (end epoch, True if the cap shortened the run)
    """
    if max_duration_s is None:
        return target, False
    if abs((target - start).total_seconds()) <= max_duration_s:
        return target, False
    return start + timedelta(seconds=direction * max_duration_s), True


def _policy_stop(
    loop: _LoopState,
    config: PropagationConfiguration,
    cancellation: CancellationSignal | None,
) -> TerminationReason | None:
    if cancellation is not None and cancellation.is_set():
        return TerminationReason.CANCELLED
    if config.max_step_count is not None and loop.step_count >= config.max_step_count:
        return TerminationReason.REACHED_MAX_STEPS
    if config.min_altitude_m is not None and loop.current.altitude < config.min_altitude_m:
        return TerminationReason.BELOW_MIN_ALTITUDE
    return None


def _attempt_step(
    loop: _LoopState,
    step_s: float,
    start_epoch: datetime,
    integrator: Integrator,
    derivatives: DerivativeFunction,
    config: PropagationConfiguration,
) -> tuple[_LoopState, bool]:
    """Take one integrator step from ``loop.current``.

    Returns:
        (next loop state, True if the step was accepted)
    """
    outcome = integrator.step(loop.current, step_s, derivatives)
    step_count = loop.step_count + 1

    if not outcome.state.is_finite():
        raise IntegrationError(
            f"Non-finite state after {outcome.step_taken_s:g} s step from {loop.current.epoch.isoformat()}"
        )

    elapsed_s = loop.elapsed_s + outcome.step_taken_s
    # Re-stamp from the start epoch so rounding does not accumulate.
    accepted_state = outcome.state.with_vector(
        start_epoch + timedelta(seconds=elapsed_s), outcome.state.to_vector(),
    )

    if not integrator.adaptive:
        return replace(
            loop, current=accepted_state, elapsed_s=elapsed_s, step_count=step_count,
        ), True

    tolerance = step_tolerance(
        config.relative_tolerance, config.absolute_tolerance, loop.current.radius,
    )
    next_step = compute_new_step_size(
        outcome.step_taken_s, outcome.error_estimate, tolerance,
        integrator.error_order, config.min_step_s, config.max_step_s,
    )

    forced = loop.forced_accept_count
    if should_reject_step(outcome.error_estimate, tolerance):
        if abs(outcome.step_taken_s) > config.min_step_s:
            logger.debug(
                "Rejected %.6g s step at %s (error %.3e > tolerance %.3e), retrying with %.6g s",
                outcome.step_taken_s, loop.current.epoch.isoformat(),
                outcome.error_estimate, tolerance, next_step,
            )
            return replace(
                loop,
                step_s=next_step,
                step_count=step_count,
                rejected_step_count=loop.rejected_step_count + 1,
            ), False
        # Cannot shrink below the minimum step; accept as-is.
        logger.debug(
            "Accepting %.6g s step at minimum step size despite error %.3e > tolerance %.3e",
            outcome.step_taken_s, outcome.error_estimate, tolerance,
        )
        forced += 1

    return replace(
        loop,
        current=accepted_state,
        elapsed_s=elapsed_s,
        step_s=next_step,
        step_count=step_count,
        forced_accept_count=forced,
    ), True


def propagate_trajectory(
    initial_state: PropagationState,
    target_epoch: datetime,
    acceleration_provider: AccelerationProvider,
    configuration: PropagationConfiguration | None = None,
    cancellation: CancellationSignal | None = None,
) -> PropagationRun:
    """Numerically integrate ``initial_state`` towards ``target_epoch``.

    Args:
        initial_state: State at the start epoch.
        target_epoch: Epoch to stop at; earlier than the start propagates backward.
        acceleration_provider: (epoch, state) -> (ax, ay, az).
        configuration: Run parameters; defaults to the precise preset.
        cancellation: Optional signal polled once per attempted step.

    Returns:
        PropagationRun with the output states and termination reason.

    Raises:
        ConfigurationError: unknown integrator kind.
        IntegrationError: the state became non-finite or the provider
            returned a malformed acceleration.
        Exception: anything raised by the acceleration provider, unchanged.
    """
    config = configuration if configuration is not None else default_configuration()
    integrator = create_integrator(config.integrator)
    derivatives = make_derivative_function(acceleration_provider)

    direction = 1.0 if target_epoch > initial_state.epoch else -1.0
    end_epoch, capped = _effective_end_epoch(
        initial_state.epoch, target_epoch, direction, config.max_duration_s,
    )
    end_reason = (
        TerminationReason.REACHED_MAX_DURATION if capped
        else TerminationReason.REACHED_END_EPOCH
    )

    schedule = None
    if config.output_mode is OutputMode.FIXED_STEP:
        schedule = FixedIntervalSchedule(
            start_epoch=initial_state.epoch,
            direction=direction,
            output_step_s=config.output_step_s,
            interpolate=config.interpolate_output,
        )

    span_s = (end_epoch - initial_state.epoch).total_seconds()
    outputs: list[PropagationState] = [initial_state]
    loop = _LoopState(current=initial_state, step_s=config.initial_step_s, schedule=schedule)

    logger.info(
        "Propagating from %s to %s with %s (%s output)",
        initial_state.epoch.isoformat(), end_epoch.isoformat(),
        integrator.kind.value, config.output_mode.value,
    )

    while True:
        reason = _policy_stop(loop, config, cancellation)
        if reason is not None:
            break

        remaining_s = span_s - loop.elapsed_s
        if abs(remaining_s) < END_EPOCH_EPSILON_S:
            reason = end_reason
            break
        step_s = direction * min(abs(loop.step_s), abs(remaining_s))

        previous, previous_elapsed_s = loop.current, loop.elapsed_s
        loop, accepted = _attempt_step(
            loop, step_s, initial_state.epoch, integrator, derivatives, config,
        )
        if not accepted:
            continue

        if config.output_mode is OutputMode.INTEGRATION_STEP:
            outputs.append(loop.current)
        elif loop.schedule is not None:
            schedule, emitted = loop.schedule.collect(
                previous, loop.current, derivatives,
                previous_elapsed_s=previous_elapsed_s, current_elapsed_s=loop.elapsed_s,
            )
            outputs.extend(emitted)
            loop = replace(loop, schedule=schedule)

    if config.output_mode is not OutputMode.INTEGRATION_STEP and outputs[-1].epoch != loop.current.epoch:
        outputs.append(loop.current)

    logger.info(
        "Propagation stopped (%s) at %s after %d steps (%d rejected)",
        reason.value, loop.current.epoch.isoformat(), loop.step_count, loop.rejected_step_count,
    )
    if loop.forced_accept_count:
        logger.warning(
            "%d steps were accepted at the minimum step size above tolerance",
            loop.forced_accept_count,
        )

    return PropagationRun(
        states=tuple(outputs),
        final_state=loop.current,
        step_count=loop.step_count,
        rejected_step_count=loop.rejected_step_count,
        forced_accept_count=loop.forced_accept_count,
        termination_reason=reason,
    )
