"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(command: str, timeout: int = 60) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m headings')
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m headings {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "reciprocal" in stdout
        assert "simulate" in stdout


class TestReferenceCommands:
    """Lookup commands print reference data."""

    def test_reciprocal(self):
        code, stdout, stderr = run_cli_command("reciprocal 04")

        assert code == 0, f"reciprocal failed: {stderr}"
        assert "22" in stdout
        assert "North East" in stdout

    def test_reciprocal_precision(self):
        code, stdout, _ = run_cli_command("reciprocal 275")

        assert code == 0
        assert "095" in stdout

    def test_reciprocal_invalid(self):
        code, stdout, _ = run_cli_command("reciprocal 40")

        assert code == 1
        assert "Invalid heading" in stdout

    def test_table(self):
        code, stdout, stderr = run_cli_command("table")

        assert code == 0, f"table failed: {stderr}"
        assert "North West" in stdout

    def test_sequence(self):
        code, stdout, stderr = run_cli_command("sequence")

        assert code == 0, f"sequence failed: {stderr}"
        assert "Sets 1, 2" in stdout


class TestSimulateCommand:
    def test_simulate_ace(self):
        code, stdout, stderr = run_cli_command("simulate --engine deck --persona ace --seed 1")

        assert code == 0, f"simulate failed: {stderr}"
        assert "36/36" in stdout

    def test_unknown_engine(self):
        code, stdout, _ = run_cli_command("simulate --engine carousel")

        assert code == 1
        assert "Unknown engine" in stdout

    def test_level_out_of_range(self):
        code, _, _ = run_cli_command("simulate --level 9")

        assert code != 0
