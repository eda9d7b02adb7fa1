# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
JSON I/O adapter.

Reads propagation configurations and initial states, and writes
propagation results. Epochs are ISO 8601 strings; naive epochs are
interpreted as UTC.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any

from trajprop.domain.configuration import PropagationConfiguration
from trajprop.domain.orbital_mechanics import OrbitalConstants
from trajprop.domain.result import PropagationResult
from trajprop.domain.state import PropagationState
from trajprop.ports.export import ResultExporter

logger = logging.getLogger(__name__)


def parse_epoch(text: str) -> datetime:
    """Parse an ISO 8601 epoch, defaulting to UTC when no offset is given."""
    epoch = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if epoch.tzinfo is None:
        logger.warning("Epoch %s has no UTC offset, assuming UTC", text)
        epoch = epoch.replace(tzinfo=timezone.utc)
    return epoch


def state_to_dict(state: PropagationState) -> dict[str, Any]:
    return {
        "epoch": state.epoch.isoformat(),
        "position": list(state.position),
        "velocity": list(state.velocity),
    }


def state_from_dict(data: dict[str, Any]) -> PropagationState:
    try:
        epoch = parse_epoch(data["epoch"])
        position = data["position"]
        velocity = data["velocity"]
    except KeyError as e:
        raise ValueError(f"State is missing field {e.args[0]!r}") from None
    reference_radius = data.get("reference_radius_m", OrbitalConstants.R_EARTH_EQUATORIAL)
    return PropagationState.from_vector(
        epoch, list(position) + list(velocity), reference_radius_m=float(reference_radius),
    )


def result_to_dict(result: PropagationResult) -> dict[str, Any]:
    return {
        "propagation_id": str(result.propagation_id),
        "start_epoch": result.start_epoch.isoformat(),
        "end_epoch": result.end_epoch.isoformat(),
        "step_count": result.step_count,
        "rejected_step_count": result.rejected_step_count,
        "computation_time_ms": result.computation_time_ms,
        "termination_reason": result.termination_reason.value,
        "was_successful": result.was_successful,
        "error_message": result.error_message,
        "configuration_name": result.configuration_name,
        "spacecraft_id": result.spacecraft_id,
        "states": [state_to_dict(s) for s in result.states],
    }


class JsonConfigurationReader:
    """Reads a PropagationConfiguration from a JSON object file."""

    def read_configuration(self, path: str) -> PropagationConfiguration:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object")
        return PropagationConfiguration.from_dict(data)


class JsonStateReader:
    """Reads an initial PropagationState from a JSON object file."""

    def read_state(self, path: str) -> PropagationState:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"State file {path} must contain a JSON object")
        return state_from_dict(data)


class JsonResultWriter(ResultExporter):
    """Writes a PropagationResult, including all states, as JSON."""

    def export(self, result: PropagationResult, path: str) -> int:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(result_to_dict(result), f, indent=2)
        return len(result.states)
