"""Tests for the mepris.logging module."""

from __future__ import annotations

import json
import logging
import os
from unittest.mock import patch

import structlog

from mepris.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    level_from_verbosity,
)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_default_level_is_warning(self) -> None:
        """Without MEPRIS_LOG_LEVEL only warnings and errors are logged."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("MEPRIS_LOG_LEVEL", None)
            configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_level_from_env(self) -> None:
        """Test log level from MEPRIS_LOG_LEVEL env var."""
        with patch.dict(os.environ, {"MEPRIS_LOG_LEVEL": "debug"}):
            configure_logging()

        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back(self) -> None:
        with patch.dict(os.environ, {"MEPRIS_LOG_LEVEL": "LOUD"}):
            configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_explicit_level_wins(self) -> None:
        """An explicit level overrides MEPRIS_LOG_LEVEL."""
        with patch.dict(os.environ, {"MEPRIS_LOG_LEVEL": "DEBUG"}):
            configure_logging(level=logging.ERROR)

        assert logging.getLogger().level == logging.ERROR

    def test_single_handler_after_reconfigure(self) -> None:
        """Calling configure_logging twice does not duplicate output."""
        configure_logging()
        configure_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_json_output(self, capsys) -> None:
        """MEPRIS_LOG_FORMAT=json renders one JSON object per event on stderr."""
        with patch.dict(os.environ, {"MEPRIS_LOG_FORMAT": "json"}):
            configure_logging(level=logging.INFO)
        clear_context()

        get_logger("mepris.test").info("config_resolved", steps=3)

        captured = capsys.readouterr()
        event = json.loads(captured.err.strip().splitlines()[-1])
        assert event["event"] == "config_resolved"
        assert event["steps"] == 3
        assert event["level"] == "info"
        assert captured.out == ""


class TestLevelFromVerbosity:
    """Tests for level_from_verbosity."""

    def test_quiet_wins(self) -> None:
        assert level_from_verbosity(2, quiet=True) == logging.ERROR

    def test_verbose_counts(self) -> None:
        assert level_from_verbosity(1, quiet=False) == logging.INFO
        assert level_from_verbosity(3, quiet=False) == logging.DEBUG

    def test_no_flags_defers_to_environment(self) -> None:
        assert level_from_verbosity(0, quiet=False) is None


class TestContextBinding:
    """Tests for context binding functions."""

    def test_bind_and_clear(self) -> None:
        """Bound values are visible until cleared."""
        clear_context()

        bind_context(step_id="rust")
        assert structlog.contextvars.get_contextvars() == {"step_id": "rust"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_context_in_output(self, capsys) -> None:
        """Bound context is merged into every event."""
        configure_logging(force_json=True, level=logging.INFO)
        clear_context()
        bind_context(step_id="rust")

        get_logger("mepris.test").info("step_skipped", reason="when")
        clear_context()

        event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert event["step_id"] == "rust"
        assert event["reason"] == "when"
