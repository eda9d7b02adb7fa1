# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Force-model adaptation for the propagation loop.

The loop only needs an acceleration provider (epoch, state) -> (ax, ay, az).
Force models follow the ForceModel protocol and are summed into a single
provider. Only central-body gravity ships here; richer physics lives with
the force-model subsystem.
"""
from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

import numpy as np

from trajprop.domain.orbital_mechanics import OrbitalConstants
from trajprop.domain.state import AccelerationProvider, PropagationState, Vector3


@runtime_checkable
class ForceModel(Protocol):
    """Structural typing port for pluggable force models."""

    def acceleration(
        self,
        epoch: datetime,
        position: Vector3,
        velocity: Vector3,
    ) -> Vector3: ...


class TwoBodyGravity:
    """Central body gravitational acceleration: a = -mu * r / |r|^3."""

    def __init__(self, mu: float = OrbitalConstants.MU_EARTH) -> None:
        if mu <= 0.0:
            raise ValueError(f"mu must be positive, got {mu}")
        self._mu = mu

    @property
    def mu(self) -> float:
        return self._mu

    def acceleration(
        self,
        epoch: datetime,
        position: Vector3,
        velocity: Vector3,
    ) -> Vector3:
        pos = np.array(position)
        r = float(np.linalg.norm(pos))
        if r == 0.0:
            raise ZeroDivisionError("Two-body acceleration is undefined at the origin")
        a = (-self._mu / (r * r * r)) * pos
        return (float(a[0]), float(a[1]), float(a[2]))


def acceleration_provider(force_models: Sequence[ForceModel]) -> AccelerationProvider:
    """Sum a list of force models into one acceleration provider."""
    models = tuple(force_models)

    def provider(epoch: datetime, state: PropagationState) -> Vector3:
        ax_total, ay_total, az_total = 0.0, 0.0, 0.0
        for fm in models:
            ax, ay, az = fm.acceleration(epoch, state.position, state.velocity)
            ax_total += ax
            ay_total += ay
            az_total += az
        return (ax_total, ay_total, az_total)

    return provider


def two_body_provider(mu: float = OrbitalConstants.MU_EARTH) -> AccelerationProvider:
    """Acceleration provider for pure Keplerian motion about ``mu``."""
    return acceleration_provider([TwoBodyGravity(mu)])
