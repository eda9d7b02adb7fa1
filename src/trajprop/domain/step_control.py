# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Step-size control for embedded Runge-Kutta integrators.

Power-law error controller: the next step is the current step scaled by
safety·(tol/err)^(1/(order+1)), with the scale factor bounded so a step
shrinks quickly on rejection and grows conservatively on acceptance.
All functions are pure.
"""
from trajprop.domain.configuration import REFERENCE_RADIUS_FLOOR_M

SAFETY_FACTOR: float = 0.9
MIN_SCALE_FACTOR: float = 0.1
MAX_SCALE_FACTOR: float = 5.0

# Errors below this are treated as exact; the step grows by MAX_SCALE_FACTOR.
NEGLIGIBLE_ERROR: float = 1e-20


def step_tolerance(
    relative_tolerance: float,
    absolute_tolerance: float,
    radius: float,
    reference_floor: float = REFERENCE_RADIUS_FLOOR_M,
) -> float:
    """Mixed tolerance rel·max(radius, floor) + abs."""
    return relative_tolerance * max(radius, reference_floor) + absolute_tolerance


def should_reject_step(error_estimate: float, tolerance: float) -> bool:
    return error_estimate > tolerance


def compute_new_step_size(
    current_step: float,
    error_estimate: float,
    tolerance: float,
    order: int,
    min_step: float,
    max_step: float,
) -> float:
    """Next step magnitude from the local error estimate.

    Args:
        current_step: Magnitude of the step just attempted (s).
        error_estimate: Local error estimate of that step.
        tolerance: Acceptable local error.
        order: Order of the embedded error estimate.
        min_step: Lower bound on the returned magnitude (s).
        max_step: Upper bound on the returned magnitude (s).

    Returns:
        New step magnitude, clamped to [min_step, max_step].
    """
    current = abs(current_step)
    if error_estimate < NEGLIGIBLE_ERROR:
        return max(min_step, min(current * MAX_SCALE_FACTOR, max_step))

    scale = SAFETY_FACTOR * (tolerance / error_estimate) ** (1.0 / (order + 1))
    scale = max(MIN_SCALE_FACTOR, min(MAX_SCALE_FACTOR, scale))
    return max(min_step, min(max_step, current * scale))
