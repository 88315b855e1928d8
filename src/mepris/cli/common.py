from __future__ import annotations

import contextlib
from collections.abc import Generator
from pathlib import Path

import click

from mepris.cli.console import console
from mepris.cli.context import CLIContext, ExitCode
from mepris.cli.output import format_error
from mepris.config.aliases import load_aliases
from mepris.exceptions import ConfigError, MeprisError, ResumeError
from mepris.logging import get_logger
from mepris.resume.store import FileResumeStore
from mepris.runner.context import RunContext
from mepris.runner.executor import StepExecutor
from mepris.system.packages import PackageManagerResolver

__all__ = ["build_executor", "cli_error_handler", "get_cli_context"]


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Context manager for common CLI error handling.

    Handles common error patterns across CLI commands:
    - KeyboardInterrupt: Exit with code 130
    - ResumeError: Format error with a hint to start a fresh run
    - ConfigError: Format error with the offending file
    - MeprisError: Format error with message
    - Generic exceptions: Log and format error

    Example:
        >>> with cli_error_handler():
        >>>     asyncio.run(executor.execute(...))
    """
    logger = get_logger(__name__)

    try:
        yield
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user.", err=True)
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except ResumeError as e:
        error_msg = format_error(
            e.message,
            suggestion="Start a new run with 'mepris run -f FILE'",
        )
        click.echo(error_msg, err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except ConfigError as e:
        details = [f"File: {e.file}"] if e.file and str(e.file) not in e.message else None
        click.echo(format_error(e.message, details=details), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except MeprisError as e:
        click.echo(format_error(e.message), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except Exception as e:
        logger.exception("Unexpected error in command")
        click.echo(f"Error: {e!s}", err=True)
        raise SystemExit(ExitCode.FAILURE) from e


def get_cli_context(ctx: click.Context) -> CLIContext:
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    return cli_ctx


def build_executor(cli_ctx: CLIContext, config_dir: Path) -> StepExecutor:
    """Create an executor for a run of a provisioning file in ``config_dir``.

    Reads the ``.env`` file and the local alias table next to the
    provisioning file and the global alias table named in the settings.
    """
    settings = cli_ctx.settings
    context = RunContext.build(config_dir)
    return StepExecutor(
        context,
        FileResumeStore(settings.state_path),
        aliases=load_aliases(settings.global_aliases_path, config_dir),
        packages=PackageManagerResolver(
            context.os_info, forced_default=settings.fake_package_manager
        ),
        console=console,
    )
