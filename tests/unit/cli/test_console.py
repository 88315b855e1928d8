"""Tests for mepris.cli.console."""

from __future__ import annotations

import io

from rich.console import Console

from mepris.cli.console import print_plain


class TestPrintPlain:
    """Tests for print_plain."""

    def test_brackets_are_not_markup(self) -> None:
        """Text that looks like rich markup is printed as is."""
        output = io.StringIO()
        target = Console(file=output, width=20, force_terminal=True)

        print_plain("[bold]setup-git[/bold] 42", target=target)

        assert output.getvalue() == "[bold]setup-git[/bold] 42\n"

    def test_long_lines_are_not_wrapped(self) -> None:
        output = io.StringIO()
        target = Console(file=output, width=10)

        print_plain("a-rather-long-step-identifier", target=target)

        assert output.getvalue() == "a-rather-long-step-identifier\n"
