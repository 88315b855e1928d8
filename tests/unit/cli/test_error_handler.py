"""Unit tests for cli_error_handler context manager."""

from __future__ import annotations

from pathlib import Path

import pytest

from mepris.cli.common import cli_error_handler
from mepris.cli.context import ExitCode
from mepris.exceptions import ConfigError, MeprisError, ResumeError, StepFailure


def test_cli_error_handler_keyboard_interrupt(capfd):
    """KeyboardInterrupt exits with 130."""
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise KeyboardInterrupt()

    assert exc_info.value.code == ExitCode.INTERRUPTED
    assert "Interrupted by user" in capfd.readouterr().err


def test_cli_error_handler_config_error_adds_file(capfd):
    """The offending file is shown when the message does not name it."""
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise ConfigError("unknown package_source 'snap'", file=Path("/cfg/dev.yaml"))

    assert exc_info.value.code == ExitCode.FAILURE
    err = capfd.readouterr().err
    assert "Error: unknown package_source 'snap'" in err
    assert "File: /cfg/dev.yaml" in err


def test_cli_error_handler_config_error_file_in_message(capfd):
    with pytest.raises(SystemExit), cli_error_handler():
        raise ConfigError("Failed to read /cfg/dev.yaml", file="/cfg/dev.yaml")

    assert "File:" not in capfd.readouterr().err


def test_cli_error_handler_resume_error(capfd):
    """Resume errors suggest starting a new run."""
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise ResumeError("No saved run to resume")

    assert exc_info.value.code == ExitCode.FAILURE
    err = capfd.readouterr().err
    assert "No saved run to resume" in err
    assert "Suggestion: Start a new run with 'mepris run -f FILE'" in err


def test_cli_error_handler_step_failure(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise StepFailure("rust", "script", "Failed to run script", returncode=1).mark_resumable()

    assert exc_info.value.code == ExitCode.FAILURE
    assert "mepris resume" in capfd.readouterr().err


def test_cli_error_handler_mepris_error(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise MeprisError("Something went wrong")

    assert exc_info.value.code == ExitCode.FAILURE
    assert "Something went wrong" in capfd.readouterr().err


def test_cli_error_handler_generic_exception(capfd):
    with pytest.raises(SystemExit) as exc_info, cli_error_handler():
        raise ValueError("Unexpected error")

    assert exc_info.value.code == ExitCode.FAILURE
    assert "Unexpected error" in capfd.readouterr().err


def test_cli_error_handler_success_case():
    """Nothing happens when the body succeeds."""
    result = None
    with cli_error_handler():
        result = "success"

    assert result == "success"
