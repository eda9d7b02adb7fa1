# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagation state and state-derivative value types.

A PropagationState is an immutable snapshot (epoch, position, velocity).
Every integration step produces a new instance; nothing mutates in place.
Units are whatever the caller and the acceleration provider agree on
(SI metres and seconds throughout this package).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

import numpy as np

from trajprop.domain.errors import IntegrationError
from trajprop.domain.orbital_mechanics import OrbitalConstants


Vector3 = tuple[float, float, float]


@dataclass(frozen=True)
class PropagationState:
    """Spacecraft position and velocity at an absolute epoch."""
    epoch: datetime
    position: Vector3
    velocity: Vector3
    reference_radius_m: float = OrbitalConstants.R_EARTH_EQUATORIAL

    @property
    def radius(self) -> float:
        """Magnitude of the position vector."""
        return float(np.linalg.norm(self.position))

    @property
    def altitude(self) -> float:
        """Radius above the reference body radius."""
        return self.radius - self.reference_radius_m

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def to_vector(self) -> np.ndarray:
        """Return (x, y, z, vx, vy, vz) as a float array."""
        return np.array(self.position + self.velocity, dtype=float)

    @classmethod
    def from_vector(
        cls,
        epoch: datetime,
        vector: Sequence[float],
        reference_radius_m: float = OrbitalConstants.R_EARTH_EQUATORIAL,
    ) -> "PropagationState":
        if len(vector) != 6:
            raise ValueError(
                f"State vector must have 6 elements (x, y, z, vx, vy, vz), got {len(vector)}"
            )
        v = [float(x) for x in vector]
        return cls(
            epoch=epoch,
            position=(v[0], v[1], v[2]),
            velocity=(v[3], v[4], v[5]),
            reference_radius_m=reference_radius_m,
        )

    def with_vector(self, epoch: datetime, vector: Sequence[float]) -> "PropagationState":
        """New state at ``epoch`` sharing this state's reference radius."""
        return PropagationState.from_vector(epoch, vector, self.reference_radius_m)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.to_vector())))


@dataclass(frozen=True)
class StateDerivative:
    """Time derivative of a state: (velocity, acceleration)."""
    velocity: Vector3
    acceleration: Vector3

    def to_vector(self) -> np.ndarray:
        return np.array(self.velocity + self.acceleration, dtype=float)

    @classmethod
    def from_vector(cls, vector: Sequence[float]) -> "StateDerivative":
        if len(vector) != 6:
            raise ValueError(f"Derivative vector must have 6 elements, got {len(vector)}")
        v = [float(x) for x in vector]
        return cls(velocity=(v[0], v[1], v[2]), acceleration=(v[3], v[4], v[5]))

    @classmethod
    def from_acceleration(
        cls, state: PropagationState, acceleration: Sequence[float],
    ) -> "StateDerivative":
        """Derivative whose velocity part is copied from ``state``."""
        if len(acceleration) != 3:
            raise IntegrationError(
                f"Acceleration provider must return 3 components, got {len(acceleration)}"
            )
        ax, ay, az = (float(a) for a in acceleration)
        return cls(velocity=state.velocity, acceleration=(ax, ay, az))


# (epoch, state) -> (ax, ay, az)
AccelerationProvider = Callable[[datetime, PropagationState], Sequence[float]]

# (epoch, state) -> StateDerivative
DerivativeFunction = Callable[[datetime, PropagationState], StateDerivative]


def make_derivative_function(provider: AccelerationProvider) -> DerivativeFunction:
    """Wrap an acceleration provider into a full state-derivative function."""

    def derivatives(epoch: datetime, state: PropagationState) -> StateDerivative:
        return StateDerivative.from_acceleration(state, provider(epoch, state))

    return derivatives
