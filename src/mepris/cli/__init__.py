"""CLI utilities for Mepris.

This module provides CLI-specific utilities including context management,
error handling and output formatting.
"""

from __future__ import annotations

from mepris.cli.context import CLIContext, ExitCode, async_command
from mepris.cli.output import format_error, format_warning

__all__ = [
    "CLIContext",
    "ExitCode",
    "async_command",
    "format_error",
    "format_warning",
]
