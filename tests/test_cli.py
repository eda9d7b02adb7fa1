# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for the trajprop command-line interface."""

import csv
import json
import sys

import pytest

from trajprop.cli import main

_STATE_ARGS = [
    '--position', '7000000', '0', '0',
    '--velocity', '0', '7546', '0',
    '--epoch', '2026-03-20T12:00:00Z',
]


def _run(monkeypatch, *args):
    monkeypatch.setattr(sys, 'argv', ['trajprop', *args])
    main()


class TestCliSuccess:

    def test_summary_printed(self, monkeypatch, capsys):
        _run(monkeypatch, *_STATE_ARGS, '--duration', '600', '--preset', 'fast')
        out = capsys.readouterr().out
        assert "Termination: reached_end_epoch" in out
        assert "2026-03-20T12:10:00+00:00" in out
        assert "Final altitude" in out

    def test_json_and_csv_export(self, monkeypatch, capsys, tmp_path):
        json_path = tmp_path / "result.json"
        csv_path = tmp_path / "states.csv"
        _run(
            monkeypatch, *_STATE_ARGS, '--duration', '600', '--preset', 'fast',
            '-o', str(json_path), '--export-csv', str(csv_path), '--spacecraft-id', 'SAT-9',
        )
        out = capsys.readouterr().out
        assert f"Wrote 11 states to {json_path}" in out
        assert f"Exported 11 states to {csv_path}" in out

        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert data["spacecraft_id"] == "SAT-9"
        assert data["configuration_name"] == "Fast Propagation"
        assert len(data["states"]) == 11
        with open(csv_path, newline="", encoding="utf-8") as f:
            assert len(list(csv.reader(f))) == 12

    def test_state_and_config_files(self, monkeypatch, capsys, tmp_path):
        state_path = tmp_path / "state.json"
        state_path.write_text(json.dumps({
            "epoch": "2026-03-20T12:00:00Z",
            "position": [7000000, 0, 0], "velocity": [0, 7546, 0],
        }), encoding="utf-8")
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({
            "name": "Custom", "integrator": "rk4", "initial_step_s": 30,
            "max_step_s": 30, "output_mode": "start_and_end",
        }), encoding="utf-8")
        out_path = tmp_path / "result.json"
        _run(
            monkeypatch, '--state-file', str(state_path), '--config', str(config_path),
            '--duration', '300', '-o', str(out_path),
        )
        data = json.loads(out_path.read_text(encoding="utf-8"))
        assert data["configuration_name"] == "Custom"
        assert data["step_count"] == 10
        assert len(data["states"]) == 2

    def test_overrides(self, monkeypatch, capsys, tmp_path):
        out_path = tmp_path / "result.json"
        _run(
            monkeypatch, *_STATE_ARGS, '--duration', '3600', '--preset', 'fast',
            '--integrator', 'dormand_prince', '--output-mode', 'integration_step',
            '--max-steps', '4', '-o', str(out_path),
        )
        data = json.loads(out_path.read_text(encoding="utf-8"))
        assert data["termination_reason"] == "reached_max_steps"
        assert data["step_count"] == 4

    def test_target_epoch_backward(self, monkeypatch, capsys, tmp_path):
        out_path = tmp_path / "result.json"
        _run(
            monkeypatch, *_STATE_ARGS, '--target-epoch', '2026-03-20T11:50:00Z',
            '--preset', 'fast', '-o', str(out_path),
        )
        data = json.loads(out_path.read_text(encoding="utf-8"))
        assert data["end_epoch"] == "2026-03-20T11:50:00+00:00"
        assert data["termination_reason"] == "reached_end_epoch"


class TestCliErrors:

    def test_missing_state_file(self, monkeypatch, capsys, tmp_path):
        missing = str(tmp_path / "nonexistent.json")
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, '--state-file', missing, '--duration', '60')
        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_incomplete_state(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, '--position', '7000000', '0', '0', '--duration', '60')
        assert exc_info.value.code == 1
        assert "--state-file" in capsys.readouterr().err

    def test_invalid_config_json(self, monkeypatch, capsys, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, *_STATE_ARGS, '--config', str(config_path), '--duration', '60')
        assert exc_info.value.code == 1
        assert "invalid JSON" in capsys.readouterr().err

    def test_invalid_override(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, *_STATE_ARGS, '--duration', '60', '--output-step', '-5')
        assert exc_info.value.code == 1
        assert "output_step_s" in capsys.readouterr().err

    def test_failed_propagation_exits_nonzero(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(
                monkeypatch, '--position', '0', '0', '0', '--velocity', '0', '0', '0',
                '--epoch', '2026-03-20T12:00:00Z', '--duration', '60',
            )
        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "integration_error" in captured.out
        assert "Propagation failed" in captured.err

    def test_duration_required(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, *_STATE_ARGS)
        assert exc_info.value.code == 2

    def test_preset_and_config_exclusive(self, monkeypatch, capsys, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            _run(
                monkeypatch, *_STATE_ARGS, '--duration', '60',
                '--preset', 'fast', '--config', str(tmp_path / "c.json"),
            )
        assert exc_info.value.code == 2
