# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
CSV state exporter.

Exports the output states of a propagation result, one row per state.
External dependencies (csv, file I/O) are confined to this adapter.
"""
import csv
import logging

from trajprop.domain.result import PropagationResult
from trajprop.ports.export import ResultExporter

logger = logging.getLogger(__name__)

_HEADER = [
    'epoch', 'elapsed_s',
    'x_m', 'y_m', 'z_m',
    'vx_m_s', 'vy_m_s', 'vz_m_s',
    'radius_m', 'altitude_m',
]


class CsvStateExporter(ResultExporter):
    """Exports propagated states to CSV."""

    def export(self, result: PropagationResult, path: str) -> int:
        if not result.states:
            logger.warning(
                "Result %s has no states (%s), writing header only",
                result.propagation_id, result.termination_reason.value,
            )
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(_HEADER)
            for state in result.states:
                x, y, z = state.position
                vx, vy, vz = state.velocity
                writer.writerow([
                    state.epoch.isoformat(),
                    f'{(state.epoch - result.start_epoch).total_seconds():.6f}',
                    f'{x:.6f}', f'{y:.6f}', f'{z:.6f}',
                    f'{vx:.9f}', f'{vy:.9f}', f'{vz:.9f}',
                    f'{state.radius:.6f}',
                    f'{state.altitude:.6f}',
                ])
        return len(result.states)
