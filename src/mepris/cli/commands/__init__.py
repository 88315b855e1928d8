"""Mepris CLI commands."""

from __future__ import annotations

from mepris.cli.commands.completion import completion
from mepris.cli.commands.list_steps import list_steps
from mepris.cli.commands.list_tags import list_tags
from mepris.cli.commands.resume import resume
from mepris.cli.commands.run import run

__all__ = ["completion", "list_steps", "list_tags", "resume", "run"]
