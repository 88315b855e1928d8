"""CLI entry point for Mepris.

This module defines the Click-based command-line interface for Mepris.
"""

from __future__ import annotations

import click

from mepris import __version__
from mepris.cli.commands import completion, list_steps, list_tags, resume, run
from mepris.cli.context import CLIContext, ExitCode
from mepris.exceptions import ConfigError
from mepris.logging import configure_logging, level_from_verbosity
from mepris.settings import load_settings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="mepris")
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Only log errors.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool) -> None:
    """Mepris - cross-platform declarative system setup."""
    ctx.ensure_object(dict)

    # Priority: quiet > verbose > MEPRIS_LOG_LEVEL
    configure_logging(level=level_from_verbosity(verbose, quiet))

    try:
        settings = load_settings()
    except ConfigError as e:
        error_parts = [f"Error: {e.message}"]
        if e.value is not None:
            error_parts.append(f"  Value: {e.value}")
        click.echo("\n".join(error_parts), err=True)
        ctx.exit(ExitCode.FAILURE)

    ctx.obj["cli_ctx"] = CLIContext(settings=settings, verbosity=verbose, quiet=quiet)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(run)
cli.add_command(resume)
cli.add_command(list_steps)
cli.add_command(list_tags)
cli.add_command(completion)

if __name__ == "__main__":
    cli()
