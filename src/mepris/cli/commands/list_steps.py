from __future__ import annotations

from pathlib import Path

import click
from rich import box
from rich.table import Table

from mepris.cli.common import cli_error_handler
from mepris.cli.console import console, print_plain
from mepris.config.resolver import resolve_config
from mepris.expressions import Condition, matches_os
from mepris.runner.selection import filter_by_os, filter_by_tags
from mepris.system.os_info import detect_os_info


@click.command("list-steps")
@click.option(
    "-f",
    "--file",
    "file",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Provisioning file to list.",
)
@click.option("--tags", "tags_expr", default=None, help="Only list steps matching this tag expression.")
@click.option("--all", "show_all", is_flag=True, default=False, help="Include steps for other systems.")
@click.option("--plain", is_flag=True, default=False, help="Print step ids only, one per line.")
def list_steps(file: Path, tags_expr: str | None, show_all: bool, plain: bool) -> None:
    """List the steps of a provisioning file.

    Examples:
        mepris list-steps -f machine.yaml
        mepris list-steps -f machine.yaml --all
        mepris list-steps -f machine.yaml --tags dev --plain
    """
    with cli_error_handler():
        config = resolve_config(file)
        os_info = detect_os_info()

        steps = config.steps
        if not show_all:
            steps = filter_by_os(steps, os_info).matching
        if tags_expr:
            steps = filter_by_tags(steps, Condition.parse(tags_expr)).matching
        elif not plain:
            tags = sorted({tag for step in steps for tag in step.tags})
            print_plain(f"all tags: {', '.join(tags)}")

        if plain:
            for step in steps:
                print_plain(step.id)
            return

        sources = {step.source_file for step in steps}
        show_file = len(sources) > 1 or (bool(sources) and sources != {config.root_file})

        table = Table(box=box.ROUNDED)
        table.add_column("id")
        table.add_column("tags")
        if show_all:
            table.add_column("os", justify="center")
        if show_file:
            table.add_column("file")

        for step in steps:
            row = [step.id, ", ".join(step.tags)]
            if show_all:
                row.append("✅" if matches_os(step.os, os_info) else "❌")
            if show_file:
                row.append(step.source_file.name)
            table.add_row(*row)

        console.print(table)
