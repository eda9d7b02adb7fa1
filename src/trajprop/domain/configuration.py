# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagation run configuration.

PropagationConfiguration is immutable and validated on construction, so an
invalid configuration never reaches the propagation loop. Standard presets
(fast / precise / long-term) are module-level factories.
"""
import math
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any

from trajprop.domain.errors import ConfigurationError


class IntegratorKind(Enum):
    """Available integration schemes."""
    RUNGE_KUTTA_4 = "rk4"
    DORMAND_PRINCE_45 = "dormand_prince"
    FEHLBERG_78 = "fehlberg78"

    @classmethod
    def parse(cls, value: "IntegratorKind | str") -> "IntegratorKind":
        """Accept an enum member, its value ("rk4") or its name ("RUNGE_KUTTA_4")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            for member in cls:
                if key.lower() == member.value or key.upper() == member.name:
                    return member
        valid = ", ".join(repr(m.value) for m in cls)
        raise ConfigurationError(f"Unknown integrator: {value!r}. Use {valid}.")


class OutputMode(Enum):
    """Which states a run reports."""
    INTEGRATION_STEP = "integration_step"
    FIXED_STEP = "fixed_step"
    START_AND_END = "start_and_end"

    @classmethod
    def parse(cls, value: "OutputMode | str") -> "OutputMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            for member in cls:
                if key.lower() == member.value or key.upper() == member.name:
                    return member
        valid = ", ".join(repr(m.value) for m in cls)
        raise ConfigurationError(f"Unknown output mode: {value!r}. Use {valid}.")


# Radius floor (m) for the relative part of the step tolerance.
REFERENCE_RADIUS_FLOOR_M: float = 1e6

# Remaining time (s) below which the end epoch counts as reached.
END_EPOCH_EPSILON_S: float = 1e-6


@dataclass(frozen=True)
class PropagationConfiguration:
    """Tunable parameters of a propagation run.

    Step sizes are magnitudes in seconds; the direction of travel comes
    from comparing the initial and target epochs. Tolerances only apply
    to adaptive integrators. ``output_step_s`` only applies in
    ``OutputMode.FIXED_STEP``.
    """
    name: str = "Default"
    description: str | None = None
    integrator: IntegratorKind = IntegratorKind.DORMAND_PRINCE_45
    initial_step_s: float = 60.0
    min_step_s: float = 1.0
    max_step_s: float = 3600.0
    relative_tolerance: float = 1e-10
    absolute_tolerance: float = 1e-10
    output_mode: OutputMode = OutputMode.FIXED_STEP
    output_step_s: float = 60.0
    max_step_count: int | None = None
    min_altitude_m: float | None = None
    max_duration_s: float | None = None
    interpolate_output: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "integrator", IntegratorKind.parse(self.integrator))
        object.__setattr__(self, "output_mode", OutputMode.parse(self.output_mode))

        for label in ("initial_step_s", "min_step_s", "max_step_s"):
            value = getattr(self, label)
            if not math.isfinite(value) or value <= 0.0:
                raise ConfigurationError(f"{label} must be a positive finite number, got {value}")
        if self.min_step_s > self.max_step_s:
            raise ConfigurationError(
                f"min_step_s ({self.min_step_s}) must not exceed max_step_s ({self.max_step_s})"
            )
        if not self.min_step_s <= self.initial_step_s <= self.max_step_s:
            raise ConfigurationError(
                f"initial_step_s ({self.initial_step_s}) must lie within "
                f"[{self.min_step_s}, {self.max_step_s}]"
            )

        if self.relative_tolerance < 0.0 or self.absolute_tolerance < 0.0:
            raise ConfigurationError("Tolerances must be non-negative")
        if self.relative_tolerance == 0.0 and self.absolute_tolerance == 0.0:
            raise ConfigurationError("At least one of relative_tolerance/absolute_tolerance must be positive")

        if self.output_mode is OutputMode.FIXED_STEP and self.output_step_s <= 0.0:
            raise ConfigurationError(f"output_step_s must be positive, got {self.output_step_s}")

        if self.max_step_count is not None:
            if isinstance(self.max_step_count, bool) or not isinstance(self.max_step_count, int):
                raise ConfigurationError(f"max_step_count must be an integer, got {self.max_step_count!r}")
            if self.max_step_count < 1:
                raise ConfigurationError(f"max_step_count must be >= 1, got {self.max_step_count}")

        if self.max_duration_s is not None and self.max_duration_s <= 0.0:
            raise ConfigurationError(f"max_duration_s must be positive, got {self.max_duration_s}")

    @property
    def is_adaptive(self) -> bool:
        return self.integrator is not IntegratorKind.RUNGE_KUTTA_4

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["integrator"] = self.integrator.value
        data["output_mode"] = self.output_mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PropagationConfiguration":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)


# --- Standard presets ---

def fast() -> PropagationConfiguration:
    """Quick propagation with fixed-step RK4."""
    return PropagationConfiguration(
        name="Fast Propagation",
        description="Quick propagation with RK4",
        integrator=IntegratorKind.RUNGE_KUTTA_4,
        initial_step_s=60.0, min_step_s=1.0, max_step_s=120.0,
        relative_tolerance=1e-8, absolute_tolerance=1e-8,
        output_mode=OutputMode.FIXED_STEP, output_step_s=60.0,
    )


def precise() -> PropagationConfiguration:
    """High accuracy with adaptive Dormand-Prince step control."""
    return PropagationConfiguration(
        name="Precise Propagation",
        description="High accuracy with adaptive step size",
        integrator=IntegratorKind.DORMAND_PRINCE_45,
        initial_step_s=60.0, min_step_s=0.1, max_step_s=600.0,
        relative_tolerance=1e-12, absolute_tolerance=1e-12,
        output_mode=OutputMode.FIXED_STEP, output_step_s=60.0,
    )


def long_term() -> PropagationConfiguration:
    """Large steps with the 7(8) Fehlberg pair for long arcs."""
    return PropagationConfiguration(
        name="Long Term Propagation",
        description="Optimized for long duration propagations",
        integrator=IntegratorKind.FEHLBERG_78,
        initial_step_s=300.0, min_step_s=1.0, max_step_s=3600.0,
        relative_tolerance=1e-10, absolute_tolerance=1e-10,
        output_mode=OutputMode.FIXED_STEP, output_step_s=600.0,
    )


PRESETS = {
    "fast": fast,
    "precise": precise,
    "long-term": long_term,
}


def preset(name: str) -> PropagationConfiguration:
    """Look up a standard preset by CLI-style name."""
    try:
        return PRESETS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset: {name!r}. Use {', '.join(sorted(PRESETS))}."
        ) from None


def default_configuration() -> PropagationConfiguration:
    """Configuration used when a caller supplies none."""
    return precise()
