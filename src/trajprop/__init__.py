# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Trajectory Propagation

Numerically integrate a spacecraft's position/velocity state forward or
backward in time under a pluggable force model. Provides fixed-step RK4
and adaptive Dormand-Prince 5(4) / Fehlberg 7(8) integrators, power-law
step-size control, per-step or fixed-interval output sampling, and
end-epoch / step-budget / altitude / duration stopping conditions.
"""

from trajprop.domain.orbital_mechanics import (
    OrbitalConstants,
    kepler_to_cartesian,
    orbital_period,
    specific_energy,
    circular_velocity,
)
from trajprop.domain.errors import (
    ConfigurationError,
    IntegrationError,
)
from trajprop.domain.state import (
    PropagationState,
    StateDerivative,
    AccelerationProvider,
    DerivativeFunction,
    make_derivative_function,
)
from trajprop.domain.configuration import (
    IntegratorKind,
    OutputMode,
    PropagationConfiguration,
    PRESETS,
    preset,
    default_configuration,
)
from trajprop.domain.integrators import (
    Integrator,
    StepOutcome,
    RungeKutta4Integrator,
    DormandPrinceIntegrator,
    Fehlberg78Integrator,
    create_integrator,
)
from trajprop.domain.step_control import (
    step_tolerance,
    should_reject_step,
    compute_new_step_size,
)
from trajprop.domain.sampling import (
    FixedIntervalSchedule,
    hermite_interpolate,
)
from trajprop.domain.result import (
    TerminationReason,
    PropagationResult,
)
from trajprop.domain.propagation import (
    CancellationSignal,
    PropagationRun,
    propagate_trajectory,
)
from trajprop.domain.force_models import (
    ForceModel,
    TwoBodyGravity,
    acceleration_provider,
    two_body_provider,
)
from trajprop.domain.events import (
    PropagationEvent,
    PropagationStarted,
    PropagationCompleted,
    PropagationFailed,
)
from trajprop.service import PropagationService

__version__ = "1.0.0"

__all__ = [
    "OrbitalConstants",
    "kepler_to_cartesian",
    "orbital_period",
    "specific_energy",
    "circular_velocity",
    "ConfigurationError",
    "IntegrationError",
    "PropagationState",
    "StateDerivative",
    "AccelerationProvider",
    "DerivativeFunction",
    "make_derivative_function",
    "IntegratorKind",
    "OutputMode",
    "PropagationConfiguration",
    "PRESETS",
    "preset",
    "default_configuration",
    "Integrator",
    "StepOutcome",
    "RungeKutta4Integrator",
    "DormandPrinceIntegrator",
    "Fehlberg78Integrator",
    "create_integrator",
    "step_tolerance",
    "should_reject_step",
    "compute_new_step_size",
    "FixedIntervalSchedule",
    "hermite_interpolate",
    "TerminationReason",
    "PropagationResult",
    "CancellationSignal",
    "PropagationRun",
    "propagate_trajectory",
    "ForceModel",
    "TwoBodyGravity",
    "acceleration_provider",
    "two_body_provider",
    "PropagationEvent",
    "PropagationStarted",
    "PropagationCompleted",
    "PropagationFailed",
    "PropagationService",
]
