# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Orbital mechanics reference functions.

Constants and closed-form two-body relations used to build initial states
and to check propagated trajectories. Only numpy + stdlib.
"""
import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class _OrbitalConstants:
    """Standard orbital constants (IAU/WGS84 values)."""
    MU_EARTH: float = 3.986004418e14   # m³/s², gravitational parameter
    R_EARTH_EQUATORIAL: float = 6_378_137.0       # m, WGS84 semi-major axis
    R_EARTH_POLAR: float = 6_356_752.3142         # m, WGS84 semi-minor axis


OrbitalConstants: _OrbitalConstants = _OrbitalConstants()


def kepler_to_cartesian(
    a: float,
    e: float,
    i_rad: float,
    omega_big_rad: float,
    omega_small_rad: float,
    nu_rad: float,
    mu: float = OrbitalConstants.MU_EARTH,
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """
    Convert Keplerian orbital elements to inertial Cartesian position/velocity.

    Args:
        a: Semi-major axis (m)
        e: Eccentricity (0 for circular, < 1)
        i_rad: Inclination (radians)
        omega_big_rad: RAAN / longitude of ascending node (radians)
        omega_small_rad: Argument of perigee (radians)
        nu_rad: True anomaly (radians)
        mu: Gravitational parameter of the central body (m³/s²)

    Returns:
        (position (x, y, z) in m, velocity (vx, vy, vz) in m/s)
    """
    if a <= 0.0:
        raise ValueError(f"semi-major axis must be positive, got {a}")
    if not 0.0 <= e < 1.0:
        raise ValueError(f"eccentricity must be in [0, 1), got {e}")

    cos_nu = math.cos(nu_rad)
    sin_nu = math.sin(nu_rad)

    p = a * (1.0 - e**2)
    r = p / (1.0 + e * cos_nu)

    p_factor = math.sqrt(mu / p)
    pos_pqw = np.array([r * cos_nu, r * sin_nu, 0.0])
    vel_pqw = np.array([-p_factor * sin_nu, p_factor * (e + cos_nu), 0.0])

    cO = math.cos(omega_big_rad)
    sO = math.sin(omega_big_rad)
    co = math.cos(omega_small_rad)
    so = math.sin(omega_small_rad)
    ci = math.cos(i_rad)
    si = math.sin(i_rad)

    rotation = np.array([
        [cO * co - sO * so * ci, -cO * so - sO * co * ci, sO * si],
        [sO * co + cO * so * ci, -sO * so + cO * co * ci, -cO * si],
        [so * si, co * si, ci],
    ])

    pos = rotation @ pos_pqw
    vel = rotation @ vel_pqw
    return (
        (float(pos[0]), float(pos[1]), float(pos[2])),
        (float(vel[0]), float(vel[1]), float(vel[2])),
    )


def orbital_period(a: float, mu: float = OrbitalConstants.MU_EARTH) -> float:
    """Keplerian period T = 2π·sqrt(a³/μ) in seconds."""
    if a <= 0.0:
        raise ValueError(f"semi-major axis must be positive, got {a}")
    return 2.0 * math.pi * math.sqrt(a**3 / mu)


def specific_energy(
    position: tuple[float, float, float],
    velocity: tuple[float, float, float],
    mu: float = OrbitalConstants.MU_EARTH,
) -> float:
    """Specific orbital energy v²/2 − μ/r (J/kg)."""
    r = float(np.linalg.norm(position))
    v = float(np.linalg.norm(velocity))
    return 0.5 * v * v - mu / r


def circular_velocity(r: float, mu: float = OrbitalConstants.MU_EARTH) -> float:
    """Circular orbit speed sqrt(μ/r) in m/s."""
    return math.sqrt(mu / r)
