"""Tests for the interactive step prompt."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from mepris.config.models import Script
from mepris.runner.interactive import MAX_SCRIPT_LINES, Decision, StepPrompter


class ScriptedAnswers:
    """Returns canned answers and records the questions asked."""

    def __init__(self, *answers: str) -> None:
        self._answers = list(answers)
        self.questions: list[tuple[str, list[str]]] = []

    def __call__(self, question: str, choices: list[str]) -> str:
        self.questions.append((question, choices))
        return self._answers.pop(0)


@pytest.fixture
def console(output: io.StringIO) -> Console:
    return Console(file=output, width=120, force_terminal=False)


def long_script(lines: int) -> Script:
    return Script("\n".join(f"echo line{i}" for i in range(1, lines + 1)))


class TestAsk:
    """Tests for StepPrompter.ask."""

    @pytest.mark.parametrize(
        ("answer", "decision"),
        [
            ("r", Decision.RUN),
            ("s", Decision.SKIP),
            ("a", Decision.ABORT),
            ("l", Decision.LEAVE),
            ("R", Decision.RUN),
        ],
    )
    def test_answers(self, console, step, answer, decision) -> None:
        """Each letter maps to its decision, ignoring case."""
        prompter = StepPrompter(console, ask=ScriptedAnswers(answer))

        assert prompter.ask(step("a", script=Script("echo"))) is decision

    def test_invalid_answer_asks_again(self, console, output, step) -> None:
        """Unknown letters print a hint and repeat the question."""
        answers = ScriptedAnswers("x", "s")
        prompter = StepPrompter(console, ask=answers)

        assert prompter.ask(step("a")) is Decision.SKIP
        assert "Invalid input, please try again." in output.getvalue()
        assert len(answers.questions) == 2

    def test_view_offered_only_for_long_scripts(self, console, step) -> None:
        """'v' is accepted only when something was truncated."""
        answers = ScriptedAnswers("v", "r")
        prompter = StepPrompter(console, ask=answers)

        prompter.ask(step("short", script=Script("echo")))

        question, choices = answers.questions[0]
        assert "v" not in choices
        assert "View full step" not in question
        assert question == (
            "What do you want to do? (r=Run, s=Skip, a=Abort, l=Leave interactive mode)"
        )

    def test_view_shows_full_step(self, console, output, step) -> None:
        """'v' prints the whole script and asks again."""
        answers = ScriptedAnswers("v", "r")
        prompter = StepPrompter(console, ask=answers)
        script = long_script(MAX_SCRIPT_LINES + 2)

        decision = prompter.ask(step("long", script=script))

        text = output.getvalue()
        assert decision is Decision.RUN
        assert "v=View full step" in answers.questions[0][0]
        assert text.count(f"echo line{MAX_SCRIPT_LINES + 2}") == 1
        assert text.count("echo line1\n") == 2


class TestShow:
    """Tests for StepPrompter.show."""

    def test_truncated(self, console, output, step) -> None:
        """Long scripts stop after the line limit with an ellipsis."""
        prompter = StepPrompter(console)

        prompter.show(step("long", script=long_script(MAX_SCRIPT_LINES + 1)), full=False)

        lines = output.getvalue().splitlines()
        assert lines[0] == "step long"
        assert lines[1] == "script:"
        assert lines[-1] == "..."
        assert f"echo line{MAX_SCRIPT_LINES + 1}" not in lines

    def test_all_parts(self, console, output, step) -> None:
        """pre_script, packages and script are shown in run order."""
        prompter = StepPrompter(console)

        prompter.show(
            step("git", pre_script=Script("echo pre"), packages=("git", "tig"), script=Script("echo post")),
            full=True,
        )

        assert output.getvalue().splitlines() == [
            "step git",
            "pre_script:",
            "echo pre",
            "packages: git, tig",
            "script:",
            "echo post",
        ]

    def test_resolved_package_names(self, console, output, step) -> None:
        """Package names passed in replace the declared ones."""
        prompter = StepPrompter(console)

        prompter.show(step("tools", packages=("fd",)), full=True, packages=["fd-find"])

        assert output.getvalue().splitlines() == ["step tools", "packages: fd-find"]

    def test_needs_truncation(self, step) -> None:
        assert StepPrompter.needs_truncation(step("a", pre_script=long_script(MAX_SCRIPT_LINES + 1)))
        assert not StepPrompter.needs_truncation(step("b", script=long_script(MAX_SCRIPT_LINES)))
