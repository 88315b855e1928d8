from __future__ import annotations

import click

from mepris.cli.commands.run import finish
from mepris.cli.common import build_executor, cli_error_handler, get_cli_context
from mepris.cli.context import async_command
from mepris.logging import get_logger
from mepris.resume.store import FileResumeStore
from mepris.runner.models import RunOptions


@click.command()
@click.option(
    "-i",
    "--interactive",
    is_flag=True,
    default=False,
    help="Ask for confirmation before each step, even if the failed run did not.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Show what would be done without running scripts or installing packages.",
)
@click.pass_context
@async_command
async def resume(ctx: click.Context, interactive: bool, dry_run: bool) -> None:
    """Continue the last failed run, retrying the step that failed.

    Examples:
        mepris resume
        mepris resume --dry-run
    """
    logger = get_logger(__name__)
    cli_ctx = get_cli_context(ctx)

    with cli_error_handler():
        state = await FileResumeStore(cli_ctx.settings.state_path).load()
        logger.info(
            "resuming_run",
            config=str(state.config_path),
            failed_step=state.failed_step_id,
            remaining=len(state.steps),
            saved_at=state.saved_at,
        )
        options = RunOptions(
            interactive=interactive or state.interactive,
            dry_run=dry_run,
            fresh=False,
        )
        executor = build_executor(cli_ctx, state.config_dir)
        result = await executor.execute(state.config_path, state.steps, state.defaults, options)

    finish(result)
