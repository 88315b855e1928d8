"""Confirmation prompt shown before each step in interactive mode."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum

from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text

from mepris.config.models import Script, Step

__all__ = ["MAX_SCRIPT_LINES", "Decision", "StepPrompter"]

# Scripts longer than this are truncated until the user asks to view them.
MAX_SCRIPT_LINES = 8

VIEW_CHOICE = "v"


class Decision(str, Enum):
    """What to do with the step the user was asked about."""

    RUN = "r"
    SKIP = "s"
    ABORT = "a"
    LEAVE = "l"


_LABELS = {
    Decision.RUN: "Run",
    Decision.SKIP: "Skip",
    Decision.ABORT: "Abort",
    Decision.LEAVE: "Leave interactive mode",
}

AskFunction = Callable[[str, list[str]], str]


def _is_too_long(script: Script | None) -> bool:
    return script is not None and script.line_count > MAX_SCRIPT_LINES


class StepPrompter:
    """Shows a step and asks whether to run it.

    ``ask`` receives the question and the accepted letters and returns the
    answer. It defaults to a rich prompt on ``console``; tests replace it.

    Example:
        ```python
        prompter = StepPrompter(console)
        if prompter.ask(step) is Decision.SKIP:
            ...
        ```
    """

    def __init__(self, console: Console, ask: AskFunction | None = None) -> None:
        self._console = console
        self._ask = ask or self._rich_ask

    def _rich_ask(self, question: str, choices: list[str]) -> str:
        return Prompt.ask(question, console=self._console, choices=choices, show_choices=False)

    def ask(self, step: Step, packages: Sequence[str] | None = None) -> Decision:
        """Show ``step`` and block until the user picks a decision.

        Args:
            step: Step about to run.
            packages: Names that will actually be installed, after alias
                resolution. Defaults to the names the step declares.
        """
        labels = [f"{decision.value}={label}" for decision, label in _LABELS.items()]
        choices = [decision.value for decision in Decision]
        if self.needs_truncation(step):
            labels.append(f"{VIEW_CHOICE}=View full step")
            choices.append(VIEW_CHOICE)
        question = f"What do you want to do? ({', '.join(labels)})"

        self.show(step, full=False, packages=packages)
        while True:
            answer = self._ask(question, choices).strip().lower()
            if answer == VIEW_CHOICE and VIEW_CHOICE in choices:
                self.show(step, full=True, packages=packages)
                continue
            if answer in choices:
                return Decision(answer)
            self._console.print("Invalid input, please try again.")

    @staticmethod
    def needs_truncation(step: Step) -> bool:
        return _is_too_long(step.pre_script) or _is_too_long(step.script)

    def show(
        self, step: Step, *, full: bool, packages: Sequence[str] | None = None
    ) -> None:
        """Print the step's scripts and packages, truncating long scripts unless ``full``."""
        self._console.print(Text.assemble("step ", (step.id, "cyan")))
        if step.pre_script is not None:
            self._console.print("pre_script:")
            self._show_script(step.pre_script, full)
        names = step.packages if packages is None else packages
        if names:
            self._console.print(Text.assemble("packages: ", (", ".join(names), "green")))
        if step.script is not None:
            self._console.print("script:")
            self._show_script(step.script, full)

    def _show_script(self, script: Script, full: bool) -> None:
        lines = script.code.splitlines()
        shown = lines if full else lines[:MAX_SCRIPT_LINES]
        for line in shown:
            self._console.print(Text(line, style="magenta"))
        if len(shown) < len(lines):
            self._console.print("...")
