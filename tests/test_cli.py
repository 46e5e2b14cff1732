"""
Tests for the command-line interface.
"""

import json

from typer.testing import CliRunner

from compos_benchmark.cli import app

runner = CliRunner()


def test_run_simulated(tmp_path):
    """Test a simulated run reports all metrics."""
    output = tmp_path / "metrics.json"

    result = runner.invoke(
        app,
        ["run", "--simulate", "--boot-delay", "12", "--rounds", "3", "--json", str(output)],
    )

    assert result.exit_code == 0, result.output
    metrics = json.loads(output.read_text())
    assert len(metrics) == 8
    assert metrics["avf_perf/compos/boot_time_with_compos_average_s"] == "12.0"
    assert metrics["avf_perf/compos/boot_time_without_compos_stdev_s"] == "0.0"


def test_run_rejects_single_round():
    result = runner.invoke(app, ["run", "--simulate", "--rounds", "1"])

    assert result.exit_code == 2
    assert "Invalid configuration" in result.output


def test_check_without_adb():
    """Test a missing adb binary is reported as an error."""
    result = runner.invoke(app, ["check", "--adb", "/nonexistent/adb"])

    assert result.exit_code == 1
    assert "adb executable not found" in result.output


def test_device_info_without_adb():
    result = runner.invoke(app, ["device-info", "--adb", "/nonexistent/adb"])

    assert result.exit_code == 1
    assert "Error getting device info" in result.output
