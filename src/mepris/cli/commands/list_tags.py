from __future__ import annotations

from pathlib import Path

import click

from mepris.cli.common import cli_error_handler
from mepris.cli.console import print_plain
from mepris.config.resolver import resolve_config
from mepris.runner.selection import filter_by_os
from mepris.system.os_info import detect_os_info


@click.command("list-tags")
@click.option(
    "-f",
    "--file",
    "file",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Provisioning file to inspect.",
)
def list_tags(file: Path) -> None:
    """List the tags used by steps that apply to this system, one per line.

    Examples:
        mepris list-tags -f machine.yaml
    """
    with cli_error_handler():
        config = resolve_config(file)
        steps = filter_by_os(config.steps, detect_os_info()).matching
        for tag in sorted({tag for step in steps for tag in step.tags}):
            print_plain(tag)
