from __future__ import annotations

from pathlib import Path

import click
from click.shell_completion import CompletionItem, get_completion_class

from mepris.config.resolver import resolve_config
from mepris.exceptions import MeprisError

__all__ = ["complete_step_ids", "completion"]

SHELLS = ("bash", "zsh", "fish")


def complete_step_ids(
    ctx: click.Context, param: click.Parameter, incomplete: str
) -> list[CompletionItem]:
    """Complete step ids from the file given with ``-f``.

    Nothing is offered until ``-f`` is on the command line or when the file
    cannot be resolved.
    """
    file = ctx.params.get("file")
    if file is None:
        return []
    try:
        config = resolve_config(Path(file))
    except MeprisError:
        return []
    return [
        CompletionItem(step.id, help=", ".join(step.tags) or None)
        for step in config.steps
        if step.id.startswith(incomplete)
    ]


@click.command()
@click.argument("shell", type=click.Choice(SHELLS))
@click.pass_context
def completion(ctx: click.Context, shell: str) -> None:
    """Print the shell completion script for SHELL.

    Examples:
        mepris completion bash > ~/.local/share/bash-completion/completions/mepris
        mepris completion fish > ~/.config/fish/completions/mepris.fish
    """
    root = ctx.find_root()
    completion_class = get_completion_class(shell)
    assert completion_class is not None
    script = completion_class(root.command, {}, "mepris", "_MEPRIS_COMPLETE").source()
    click.echo(script)
