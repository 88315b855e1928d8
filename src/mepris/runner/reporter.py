"""User-facing progress output of a run.

Progress goes to a rich console and is independent from structured logs,
which are controlled by ``MEPRIS_LOG_LEVEL``.
"""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

from mepris.runner.models import RunResult, SkipReason, StepStatus

__all__ = ["ProgressReporter", "print_dry_run_summary"]


class ProgressReporter:
    """Prints run progress prefixed with ``[current/total]``.

    Example:
        ```python
        reporter = ProgressReporter(console, total=3)
        reporter.start_step(1)
        reporter.progress("🚀 Running step 'base'...")
        # [1/3] 🚀 Running step 'base'...
        ```
    """

    def __init__(self, console: Console, total: int = 0) -> None:
        self._console = console
        self.total = total
        self.current = 0

    @property
    def prefix(self) -> str:
        width = len(str(self.total))
        return f"[{self.current:>{width}}/{self.total}]"

    def start_step(self, position: int) -> None:
        self.current = position

    def progress(self, message: str) -> None:
        self._console.print(f"{self.prefix} {message}", markup=False, highlight=False, soft_wrap=True)

    def message(self, message: str) -> None:
        self._console.print(message, markup=False, highlight=False, soft_wrap=True)

    def warning(self, message: str) -> None:
        self._console.print(Text.assemble(("Warning:", "yellow"), f" {message}"))

    def output(self, chunk: str) -> None:
        """Forward raw child process output unchanged."""
        self._console.file.write(chunk)
        self._console.file.flush()


def _join(ids: list[str]) -> str:
    return ", ".join(ids)


def print_dry_run_summary(console: Console, result: RunResult) -> None:
    """Describe what a dry run would have done.

    Args:
        console: Destination console.
        result: Result of a dry run.
    """

    def say(text: str) -> None:
        console.print(text, markup=False, highlight=False, soft_wrap=True)

    for plan in result.plans:
        say(f"🚀 Would run step '{plan.step_id}'")
        if plan.packages:
            packages = ", ".join(str(package) for package in plan.packages)
            say(f"📦 Would install packages {packages}")
            if plan.manager is not None and not plan.manager_installed:
                say(f"⚠️ Package manager {plan.manager} is not installed")
        if plan.missing_shells:
            say(
                f"⚠️ Step '{plan.step_id}' uses shell(s) that are not currently available. "
                f"Make sure they are installed in the previous steps: {_join(list(plan.missing_shells))}"
            )

    if not result.plans:
        say("❌ No steps would be run")

    summaries = [
        (SkipReason.TAGS, "🚫 Ignored steps due to tag mismatch"),
        (SkipReason.OS, "🚫 Ignored steps due to OS mismatch"),
        (SkipReason.START, "⏭️ Skipped steps before the start step"),
        (SkipReason.WHEN, "🚫 Ignored steps due to failed when script"),
    ]
    for reason, label in summaries:
        ids = result.ids(StepStatus.SKIPPED, reason)
        if ids:
            say(f"{label}: {_join(ids)}")
