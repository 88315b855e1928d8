"""Structured logging for Mepris.

Diagnostic logs are emitted through structlog and routed to stderr via the
standard library root logger. They are separate from the user-facing
progress lines the runner prints through the rich console.

Environment:
    MEPRIS_LOG_FORMAT: ``json`` for machine-readable output, anything else for
        the colored console renderer.
    MEPRIS_LOG_LEVEL: Standard level name (``DEBUG``, ``INFO``...). Defaults
        to ``WARNING`` so a plain run only shows progress output.

Usage:
    from mepris.logging import configure_logging, get_logger

    configure_logging()
    log = get_logger(__name__)
    log.info("config_resolved", steps=12, files=3)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "level_from_verbosity",
]

LOG_FORMAT_ENV_VAR = "MEPRIS_LOG_FORMAT"
LOG_LEVEL_ENV_VAR = "MEPRIS_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def _get_log_level() -> int:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.WARNING)


def _is_json_output() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def level_from_verbosity(verbose: int, quiet: bool) -> int | None:
    """Translate CLI ``-v``/``-q`` flags into a log level.

    Args:
        verbose: Number of ``-v`` flags given.
        quiet: Whether ``-q`` was given.

    Returns:
        A logging level, or None to fall back to MEPRIS_LOG_LEVEL.
    """
    if quiet:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return None


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the previous handlers.

    Args:
        force_json: Force JSON output regardless of MEPRIS_LOG_FORMAT.
        level: Override log level. If None, reads MEPRIS_LOG_LEVEL.
    """
    use_json = force_json or _is_json_output()
    log_level = level if level is not None else _get_log_level()

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(use_json),
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to ``name``.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        A bound structlog logger.
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind key-value pairs into every subsequent log event.

    The executor binds ``step_id`` here while a step is being processed.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop all context bound with :func:`bind_context`."""
    structlog.contextvars.clear_contextvars()
