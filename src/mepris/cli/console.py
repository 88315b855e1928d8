"""Consoles the CLI prints to.

``console`` carries command results (step lists, tags, dry run summaries)
and ``err_console`` carries errors and warnings, so results stay pipeable.
Both write to whatever ``sys.stdout``/``sys.stderr`` is at print time,
which lets click's test runner capture them.
"""

from __future__ import annotations

from rich.console import Console

__all__ = ["console", "err_console", "print_plain"]

console = Console()
err_console = Console(stderr=True)


def print_plain(text: str, *, target: Console | None = None) -> None:
    """Print user-provided text verbatim.

    Step ids, tags and file names may contain ``[`` or look like numbers,
    so markup and highlighting are off. Long lines are not wrapped.
    """
    (target or console).print(text, markup=False, highlight=False, soft_wrap=True)
