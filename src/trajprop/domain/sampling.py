# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Fixed-interval output sampling.

Output instants sit at multiples of the output step measured from the
initial epoch in the direction of travel. When an accepted step crosses
one or more instants, they are emitted either as cubic Hermite
interpolants between the two bracketing accepted states (exact epochs)
or as the post-step state itself, repeated once per crossed instant
(legacy behaviour).
"""
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

import numpy as np

from trajprop.domain.state import DerivativeFunction, PropagationState

# Slack (s) when comparing an accepted epoch against a scheduled instant.
_SCHEDULE_EPSILON_S: float = 1e-9


def hermite_interpolate(
    t0: float,
    y0: np.ndarray,
    f0: np.ndarray,
    t1: float,
    y1: np.ndarray,
    f1: np.ndarray,
    t_eval: float,
) -> np.ndarray:
    """Cubic Hermite interpolation between two integration points."""
    h = t1 - t0
    if abs(h) < 1e-30:
        return np.asarray(y0, dtype=float)
    theta = (t_eval - t0) / h
    theta2 = theta * theta
    theta3 = theta2 * theta

    h00 = 2.0 * theta3 - 3.0 * theta2 + 1.0
    h10 = theta3 - 2.0 * theta2 + theta
    h01 = -2.0 * theta3 + 3.0 * theta2
    h11 = theta3 - theta2

    return h00 * y0 + h10 * h * f0 + h01 * y1 + h11 * h * f1


@dataclass(frozen=True)
class FixedIntervalSchedule:
    """Position in the output schedule of one run.

    ``next_index`` is k of the next instant start + direction·k·step.
    """
    start_epoch: datetime
    direction: float
    output_step_s: float
    interpolate: bool = True
    next_index: int = 1

    def _elapsed(self, epoch: datetime) -> float:
        return (epoch - self.start_epoch).total_seconds()

    def collect(
        self,
        previous: PropagationState,
        current: PropagationState,
        derivatives: DerivativeFunction,
        previous_elapsed_s: float | None = None,
        current_elapsed_s: float | None = None,
    ) -> tuple["FixedIntervalSchedule", tuple[PropagationState, ...]]:
        """Emit the states for every instant crossed by previous -> current.

        ``previous_elapsed_s`` and ``current_elapsed_s`` are the signed
        seconds since ``start_epoch`` of the two states. The loop passes
        its own clock here since state epochs only resolve microseconds;
        when omitted they are derived from the epochs.

        Returns:
            (advanced schedule, emitted states in travel order)
        """
        t0 = self._elapsed(previous.epoch) if previous_elapsed_s is None else previous_elapsed_s
        t1 = self._elapsed(current.epoch) if current_elapsed_s is None else current_elapsed_s
        progress = self.direction * t1
        index = self.next_index
        due: list[float] = []
        while index * self.output_step_s <= progress + _SCHEDULE_EPSILON_S:
            due.append(index * self.output_step_s)
            index += 1
        if not due:
            return self, ()

        advanced = replace(self, next_index=index)
        if not self.interpolate:
            # Post-step state once per crossed instant.
            return advanced, (current,) * len(due)

        emitted: list[PropagationState] = []
        interpolation_data = None
        for scheduled in due:
            if abs(scheduled - progress) <= _SCHEDULE_EPSILON_S:
                emitted.append(current)
                continue
            if interpolation_data is None:
                interpolation_data = (
                    previous.to_vector(),
                    derivatives(previous.epoch, previous).to_vector(),
                    current.to_vector(),
                    derivatives(current.epoch, current).to_vector(),
                )
            y0, f0, y1, f1 = interpolation_data
            t_eval = self.direction * scheduled
            y = hermite_interpolate(t0, y0, f0, t1, y1, f1, t_eval)
            epoch = self.start_epoch + timedelta(seconds=t_eval)
            emitted.append(current.with_vector(epoch, y))
        return advanced, tuple(emitted)
