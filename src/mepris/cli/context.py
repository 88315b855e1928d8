"""CLI context and utilities for Mepris.

This module provides exit codes and the bridge from Click's synchronous
interface to the async executor.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, TypeVar

from mepris.settings import MeprisSettings

__all__ = [
    "CLIContext",
    "ExitCode",
    "async_command",
]


class ExitCode(IntEnum):
    """Standard exit codes for the Mepris CLI.

    - 0 for success
    - 1 for failure
    - 130 for keyboard interrupt or interactive abort (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options and settings shared by every command.

    Attributes:
        settings: Loaded tool settings.
        verbosity: Verbosity level (0=default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.
    """

    settings: MeprisSettings
    verbosity: int = 0
    quiet: bool = False


F = TypeVar("F", bound=Callable[..., Any])


def async_command(f: F) -> F:
    """Decorator to run async Click commands with asyncio.run().

    Example:
        >>> @cli.command()
        >>> @async_command
        >>> async def resume(ctx: click.Context) -> None:
        >>>     await executor.execute(...)
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper  # type: ignore[return-value]
