from __future__ import annotations

from pathlib import Path

import click

from mepris.cli.commands.completion import complete_step_ids
from mepris.cli.common import build_executor, cli_error_handler, get_cli_context
from mepris.cli.console import console, err_console
from mepris.cli.context import ExitCode, async_command
from mepris.cli.output import format_warning
from mepris.config.resolver import resolve_config
from mepris.exceptions import ConfigError
from mepris.expressions import Condition
from mepris.logging import get_logger
from mepris.runner.models import RunOptions, RunResult
from mepris.runner.reporter import print_dry_run_summary


def finish(result: RunResult) -> None:
    """Print the dry run summary or exit with 130 after an interactive abort."""
    if result.dry_run:
        print_dry_run_summary(console, result)
    if result.aborted:
        err_console.print(
            format_warning("Run aborted. Continue later with 'mepris resume'."),
            markup=False,
            soft_wrap=True,
        )
        raise SystemExit(ExitCode.INTERRUPTED)


@click.command()
@click.option(
    "-f",
    "--file",
    "file",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Provisioning file to run.",
)
@click.option("--tags", "tags_expr", default=None, help="Tag expression, e.g. 'dev && !gui'.")
@click.option(
    "--step",
    "step_ids",
    multiple=True,
    shell_complete=complete_step_ids,
    help="Run only this step. May be repeated; steps run in the order given.",
)
@click.option(
    "--start-step",
    default=None,
    shell_complete=complete_step_ids,
    help="Skip the steps before this one.",
)
@click.option(
    "-i",
    "--interactive",
    is_flag=True,
    default=False,
    help="Ask for confirmation before each step.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Show what would be done without running scripts or installing packages.",
)
@click.pass_context
@async_command
async def run(
    ctx: click.Context,
    file: Path,
    tags_expr: str | None,
    step_ids: tuple[str, ...],
    start_step: str | None,
    interactive: bool,
    dry_run: bool,
) -> None:
    """Execute the steps of a provisioning file.

    Examples:
        mepris run -f machine.yaml
        mepris run -f machine.yaml --tags 'dev && !gui' --dry-run
        mepris run -f machine.yaml --step rust --step node -i
    """
    logger = get_logger(__name__)
    cli_ctx = get_cli_context(ctx)

    with cli_error_handler():
        config = resolve_config(file)
        if not config.steps:
            raise ConfigError("The file doesn't contain any steps", file=config.root_file)

        options = RunOptions(
            tags=Condition.parse(tags_expr) if tags_expr else None,
            step_ids=step_ids,
            start_step_id=start_step,
            interactive=interactive,
            dry_run=dry_run,
        )
        logger.debug("run_command", file=str(config.root_file), options=str(options))
        executor = build_executor(cli_ctx, config.root_dir)
        result = await executor.execute(config.root_file, config.steps, config.defaults, options)

    finish(result)
