# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Command-line interface for two-body trajectory propagation.

Usage:
    # One LEO orbit-ish with the precise preset, summary only
    trajprop --position 7000000 0 0 --velocity 0 7546 0 \\
        --epoch 2026-03-20T12:00:00Z --duration 5400

    # Initial state and configuration from JSON, results to JSON + CSV
    trajprop --state-file state.json --config config.json \\
        --duration 86400 -o result.json --export-csv states.csv

    # Preset with overrides
    trajprop --state-file state.json --preset fast --output-step 10 \\
        --min-altitude 120000 --duration 3600
"""
import argparse
import dataclasses
import json
import logging
import sys
from datetime import timedelta

from trajprop.adapters.csv_exporter import CsvStateExporter
from trajprop.adapters.event_sinks import LoggingEventSink
from trajprop.adapters.json_io import (
    JsonConfigurationReader,
    JsonResultWriter,
    JsonStateReader,
    parse_epoch,
)
from trajprop.domain.configuration import (
    PRESETS,
    IntegratorKind,
    OutputMode,
    PropagationConfiguration,
    preset,
)
from trajprop.domain.force_models import two_body_provider
from trajprop.domain.orbital_mechanics import OrbitalConstants
from trajprop.domain.result import PropagationResult
from trajprop.domain.state import PropagationState
from trajprop.service import PropagationService


def build_configuration(args: argparse.Namespace) -> PropagationConfiguration:
    """Preset or JSON configuration, with command-line overrides applied."""
    if args.config:
        config = JsonConfigurationReader().read_configuration(args.config)
    else:
        config = preset(args.preset)

    overrides = {
        'integrator': args.integrator,
        'output_mode': args.output_mode,
        'output_step_s': args.output_step,
        'max_step_count': args.max_steps,
        'min_altitude_m': args.min_altitude,
        'relative_tolerance': args.rtol,
        'absolute_tolerance': args.atol,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.no_interpolation:
        overrides['interpolate_output'] = False
    if overrides:
        config = dataclasses.replace(config, **overrides)
    return config


def build_initial_state(args: argparse.Namespace) -> PropagationState:
    if args.state_file:
        return JsonStateReader().read_state(args.state_file)
    if args.position is None or args.velocity is None or args.epoch is None:
        raise ValueError("Provide --state-file, or all of --position, --velocity and --epoch")
    return PropagationState(
        epoch=parse_epoch(args.epoch),
        position=tuple(args.position),
        velocity=tuple(args.velocity),
        reference_radius_m=args.reference_radius,
    )


def run(args: argparse.Namespace) -> PropagationResult:
    """Propagate the requested two-body trajectory and write exports."""
    config = build_configuration(args)
    initial_state = build_initial_state(args)
    if args.target_epoch:
        target_epoch = parse_epoch(args.target_epoch)
    else:
        target_epoch = initial_state.epoch + timedelta(seconds=args.duration)

    service = PropagationService(event_sink=LoggingEventSink())
    result = service.propagate(
        initial_state,
        target_epoch,
        two_body_provider(args.mu),
        configuration=config,
        spacecraft_id=args.spacecraft_id,
    )

    if args.output:
        n = JsonResultWriter().export(result, args.output)
        print(f"Wrote {n} states to {args.output}")
    if args.export_csv:
        n = CsvStateExporter().export(result, args.export_csv)
        print(f"Exported {n} states to {args.export_csv}")
    return result


def _print_summary(result: PropagationResult) -> None:
    print(f"Termination: {result.termination_reason.value}")
    print(f"Epochs: {result.start_epoch.isoformat()} -> {result.end_epoch.isoformat()}")
    print(
        f"Steps: {result.step_count} attempted, {result.rejected_step_count} rejected; "
        f"{len(result.states)} output states in {result.computation_time_ms:.1f} ms"
    )
    final = result.final_state
    if final is not None:
        print(f"Final altitude: {final.altitude / 1000.0:.3f} km")


def main():
    parser = argparse.ArgumentParser(
        description="Propagate a spacecraft state under two-body gravity"
    )
    state_group = parser.add_argument_group('initial state')
    state_group.add_argument(
        '--state-file',
        help="JSON file with epoch, position and velocity"
    )
    state_group.add_argument(
        '--position', nargs=3, type=float, metavar=('X', 'Y', 'Z'),
        help="Initial position (m)"
    )
    state_group.add_argument(
        '--velocity', nargs=3, type=float, metavar=('VX', 'VY', 'VZ'),
        help="Initial velocity (m/s)"
    )
    state_group.add_argument('--epoch', help="Initial epoch (ISO 8601)")
    state_group.add_argument(
        '--reference-radius', type=float, default=OrbitalConstants.R_EARTH_EQUATORIAL,
        help="Body radius for altitude (m, default: WGS84 equatorial)"
    )

    span_group = parser.add_mutually_exclusive_group(required=True)
    span_group.add_argument(
        '--duration', type=float,
        help="Propagation span in seconds (negative propagates backward)"
    )
    span_group.add_argument('--target-epoch', help="Target epoch (ISO 8601)")

    parser.add_argument(
        '--mu', type=float, default=OrbitalConstants.MU_EARTH,
        help="Central body gravitational parameter (m^3/s^2, default: Earth)"
    )
    parser.add_argument('--spacecraft-id', help="Identifier carried into the result")

    config_group = parser.add_argument_group('configuration')
    source = config_group.add_mutually_exclusive_group()
    source.add_argument(
        '--preset', choices=sorted(PRESETS), default='precise',
        help="Standard configuration (default: precise)"
    )
    source.add_argument('--config', help="JSON configuration file")
    config_group.add_argument(
        '--integrator', choices=[k.value for k in IntegratorKind],
        help="Override the integrator"
    )
    config_group.add_argument(
        '--output-mode', choices=[m.value for m in OutputMode],
        help="Override the output mode"
    )
    config_group.add_argument('--output-step', type=float, help="Fixed output interval (s)")
    config_group.add_argument('--max-steps', type=int, help="Maximum attempted steps")
    config_group.add_argument('--min-altitude', type=float, help="Stop below this altitude (m)")
    config_group.add_argument('--rtol', type=float, help="Relative tolerance")
    config_group.add_argument('--atol', type=float, help="Absolute tolerance")
    config_group.add_argument(
        '--no-interpolation', action='store_true', default=False,
        help="Report post-step states instead of interpolating fixed-step output"
    )

    export_group = parser.add_argument_group('export')
    export_group.add_argument('--output', '-o', help="Write the full result as JSON")
    export_group.add_argument('--export-csv', help="Export output states to CSV")

    parser.add_argument(
        '--verbose', '-v', action='count', default=0,
        help="Log progress (-v info, -vv debug)"
    )

    args = parser.parse_args()

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        result = run(args)
    except FileNotFoundError as e:
        print(f"Error: file not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    _print_summary(result)
    if result.is_error:
        print(f"Propagation failed: {result.error_message}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
