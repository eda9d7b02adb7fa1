# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Single-step integrators for the propagation loop.

Three schemes behind one Integrator protocol:

- RungeKutta4Integrator: classical fixed-step RK4, no error estimate.
- DormandPrinceIntegrator: embedded RK5(4) pair, advances with the
  5th-order solution.
- Fehlberg78Integrator: embedded RKF7(8) pair, advances with the
  7th-order solution.

Embedded schemes report the max-abs component difference between their
two solutions as the local error estimate. ``create_integrator`` selects
the implementation from an IntegratorKind.
"""
from datetime import timedelta
from typing import NamedTuple, Protocol, runtime_checkable

import numpy as np

from trajprop.domain.configuration import IntegratorKind
from trajprop.domain.errors import ConfigurationError
from trajprop.domain.state import DerivativeFunction, PropagationState


class StepOutcome(NamedTuple):
    """Result of one integrator step."""
    state: PropagationState
    step_taken_s: float
    error_estimate: float


@runtime_checkable
class Integrator(Protocol):
    """Structural typing port for single-step integrators."""

    kind: IntegratorKind
    order: int
    error_order: int
    adaptive: bool

    def step(
        self,
        state: PropagationState,
        step_s: float,
        derivatives: DerivativeFunction,
    ) -> StepOutcome: ...


# --- Dormand-Prince Butcher tableau (7 stages, FSAL) ---

DORMAND_PRINCE_C: tuple[float, ...] = (
    0.0,
    1.0 / 5.0,
    3.0 / 10.0,
    4.0 / 5.0,
    8.0 / 9.0,
    1.0,
    1.0,
)

DORMAND_PRINCE_A: tuple[tuple[float, ...], ...] = (
    (),
    (1.0 / 5.0,),
    (3.0 / 40.0, 9.0 / 40.0),
    (44.0 / 45.0, -56.0 / 15.0, 32.0 / 9.0),
    (19372.0 / 6561.0, -25360.0 / 2187.0, 64448.0 / 6561.0, -212.0 / 729.0),
    (9017.0 / 3168.0, -355.0 / 33.0, 46732.0 / 5247.0, 49.0 / 176.0, -5103.0 / 18656.0),
    (35.0 / 384.0, 0.0, 500.0 / 1113.0, 125.0 / 192.0, -2187.0 / 6784.0, 11.0 / 84.0),
)

# 5th-order weights (propagated solution, equal to the last row of A)
DORMAND_PRINCE_B5: tuple[float, ...] = (
    35.0 / 384.0,
    0.0,
    500.0 / 1113.0,
    125.0 / 192.0,
    -2187.0 / 6784.0,
    11.0 / 84.0,
    0.0,
)

# Embedded 4th-order weights (error estimation only)
DORMAND_PRINCE_B4: tuple[float, ...] = (
    5179.0 / 57600.0,
    0.0,
    7571.0 / 16695.0,
    393.0 / 640.0,
    -92097.0 / 339200.0,
    187.0 / 2100.0,
    1.0 / 40.0,
)


# --- Runge-Kutta-Fehlberg 7(8) Butcher tableau (13 stages) ---

FEHLBERG_78_C: tuple[float, ...] = (
    0.0, 2.0 / 27.0, 1.0 / 9.0, 1.0 / 6.0, 5.0 / 12.0, 1.0 / 2.0, 5.0 / 6.0,
    1.0 / 6.0, 2.0 / 3.0, 1.0 / 3.0, 1.0, 0.0, 1.0,
)

FEHLBERG_78_A: tuple[tuple[float, ...], ...] = (
    (),
    (2.0 / 27.0,),
    (1.0 / 36.0, 1.0 / 12.0),
    (1.0 / 24.0, 0.0, 1.0 / 8.0),
    (5.0 / 12.0, 0.0, -25.0 / 16.0, 25.0 / 16.0),
    (1.0 / 20.0, 0.0, 0.0, 1.0 / 4.0, 1.0 / 5.0),
    (-25.0 / 108.0, 0.0, 0.0, 125.0 / 108.0, -65.0 / 27.0, 125.0 / 54.0),
    (31.0 / 300.0, 0.0, 0.0, 0.0, 61.0 / 225.0, -2.0 / 9.0, 13.0 / 900.0),
    (2.0, 0.0, 0.0, -53.0 / 6.0, 704.0 / 45.0, -107.0 / 9.0, 67.0 / 90.0, 3.0),
    (-91.0 / 108.0, 0.0, 0.0, 23.0 / 108.0, -976.0 / 135.0, 311.0 / 54.0,
     -19.0 / 60.0, 17.0 / 6.0, -1.0 / 12.0),
    (2383.0 / 4100.0, 0.0, 0.0, -341.0 / 164.0, 4496.0 / 1025.0, -301.0 / 82.0,
     2133.0 / 4100.0, 45.0 / 82.0, 45.0 / 164.0, 18.0 / 41.0),
    (3.0 / 205.0, 0.0, 0.0, 0.0, 0.0, -6.0 / 41.0, -3.0 / 205.0, -3.0 / 41.0,
     3.0 / 41.0, 6.0 / 41.0, 0.0),
    (-1777.0 / 4100.0, 0.0, 0.0, -341.0 / 164.0, 4496.0 / 1025.0, -289.0 / 82.0,
     2193.0 / 4100.0, 51.0 / 82.0, 33.0 / 164.0, 12.0 / 41.0, 0.0, 1.0),
)

# 7th-order weights (propagated solution)
FEHLBERG_78_B7: tuple[float, ...] = (
    41.0 / 840.0, 0.0, 0.0, 0.0, 0.0, 34.0 / 105.0, 9.0 / 35.0, 9.0 / 35.0,
    9.0 / 280.0, 9.0 / 280.0, 41.0 / 840.0, 0.0, 0.0,
)

# Embedded 8th-order weights (error estimation only)
FEHLBERG_78_B8: tuple[float, ...] = (
    0.0, 0.0, 0.0, 0.0, 0.0, 34.0 / 105.0, 9.0 / 35.0, 9.0 / 35.0,
    9.0 / 280.0, 9.0 / 280.0, 0.0, 41.0 / 840.0, 41.0 / 840.0,
)


def _shifted(state: PropagationState, seconds: float, vector: np.ndarray) -> PropagationState:
    return state.with_vector(state.epoch + timedelta(seconds=seconds), vector)


def _explicit_stages(
    state: PropagationState,
    h: float,
    derivatives: DerivativeFunction,
    c: tuple[float, ...],
    a: tuple[tuple[float, ...], ...],
) -> np.ndarray:
    """Evaluate all stages of an explicit Butcher tableau.

    Returns:
        Array of shape (stages, 6) holding the stage derivatives k_i.
    """
    y = state.to_vector()
    k = np.zeros((len(c), 6))
    k[0] = derivatives(state.epoch, state).to_vector()
    for i in range(1, len(c)):
        increment = np.asarray(a[i]) @ k[:i]
        stage_state = _shifted(state, c[i] * h, y + h * increment)
        k[i] = derivatives(stage_state.epoch, stage_state).to_vector()
    return k


class RungeKutta4Integrator:
    """Classical 4th-order Runge-Kutta. Always accepts the requested step."""

    kind = IntegratorKind.RUNGE_KUTTA_4
    order = 4
    error_order = 4
    adaptive = False

    def step(
        self,
        state: PropagationState,
        step_s: float,
        derivatives: DerivativeFunction,
    ) -> StepOutcome:
        h = step_s
        y = state.to_vector()

        k1 = derivatives(state.epoch, state).to_vector()
        s2 = _shifted(state, 0.5 * h, y + 0.5 * h * k1)
        k2 = derivatives(s2.epoch, s2).to_vector()
        s3 = _shifted(state, 0.5 * h, y + 0.5 * h * k2)
        k3 = derivatives(s3.epoch, s3).to_vector()
        s4 = _shifted(state, h, y + h * k3)
        k4 = derivatives(s4.epoch, s4).to_vector()

        y_new = y + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)
        return StepOutcome(_shifted(state, h, y_new), h, 0.0)


class _EmbeddedRungeKutta:
    """Shared stepping for embedded pairs: propagate with one weight set,
    estimate error against the other."""

    kind: IntegratorKind
    order: int
    error_order: int
    adaptive = True

    _c: tuple[float, ...]
    _a: tuple[tuple[float, ...], ...]
    _b_propagate: tuple[float, ...]
    _b_embedded: tuple[float, ...]

    def step(
        self,
        state: PropagationState,
        step_s: float,
        derivatives: DerivativeFunction,
    ) -> StepOutcome:
        h = step_s
        k = _explicit_stages(state, h, derivatives, self._c, self._a)
        y = state.to_vector()
        y_new = y + h * (np.asarray(self._b_propagate) @ k)
        y_embedded = y + h * (np.asarray(self._b_embedded) @ k)
        error = float(np.max(np.abs(y_new - y_embedded)))
        return StepOutcome(_shifted(state, h, y_new), h, error)


class DormandPrinceIntegrator(_EmbeddedRungeKutta):
    """Dormand-Prince RK5(4) with 4th-order embedded error estimate."""

    kind = IntegratorKind.DORMAND_PRINCE_45
    order = 5
    error_order = 4
    _c = DORMAND_PRINCE_C
    _a = DORMAND_PRINCE_A
    _b_propagate = DORMAND_PRINCE_B5
    _b_embedded = DORMAND_PRINCE_B4


class Fehlberg78Integrator(_EmbeddedRungeKutta):
    """Runge-Kutta-Fehlberg 7(8); error = h·41/840·(k1 + k11 − k12 − k13)."""

    kind = IntegratorKind.FEHLBERG_78
    order = 7
    error_order = 7
    _c = FEHLBERG_78_C
    _a = FEHLBERG_78_A
    _b_propagate = FEHLBERG_78_B7
    _b_embedded = FEHLBERG_78_B8


_INTEGRATORS: dict[IntegratorKind, type] = {
    IntegratorKind.RUNGE_KUTTA_4: RungeKutta4Integrator,
    IntegratorKind.DORMAND_PRINCE_45: DormandPrinceIntegrator,
    IntegratorKind.FEHLBERG_78: Fehlberg78Integrator,
}


def create_integrator(kind: IntegratorKind | str) -> Integrator:
    """Instantiate the integrator for ``kind``.

    Raises:
        ConfigurationError: if ``kind`` names no known integrator.
    """
    parsed = IntegratorKind.parse(kind)
    try:
        return _INTEGRATORS[parsed]()
    except KeyError:
        raise ConfigurationError(f"No integrator registered for {parsed!r}") from None
