"""Tests for run progress output."""

from __future__ import annotations

import io

from rich.console import Console

from mepris.runner.models import (
    PackagePlan,
    RunResult,
    SkipReason,
    StepOutcome,
    StepPlan,
    StepStatus,
)
from mepris.runner.reporter import ProgressReporter, print_dry_run_summary


def make_console(output: io.StringIO) -> Console:
    return Console(file=output, width=200, force_terminal=False)


class TestProgressReporter:
    """Tests for ProgressReporter."""

    def test_prefix_is_padded_to_total(self, output) -> None:
        """The position is right-aligned to the width of the total."""
        reporter = ProgressReporter(make_console(output), total=12)
        reporter.start_step(3)

        reporter.progress("🚀 Running step 'x'...")

        assert output.getvalue() == "[ 3/12] 🚀 Running step 'x'...\n"

    def test_message_has_no_prefix(self, output) -> None:
        reporter = ProgressReporter(make_console(output), total=2)

        reporter.message("✅ Run completed")

        assert output.getvalue() == "✅ Run completed\n"

    def test_brackets_are_not_markup(self, output) -> None:
        """Step ids that look like rich markup are printed verbatim."""
        reporter = ProgressReporter(make_console(output), total=1)
        reporter.start_step(1)

        reporter.progress("🚀 Running step '[bold]x'...")

        assert "[bold]x" in output.getvalue()

    def test_output_is_forwarded_unchanged(self, output) -> None:
        """Child output is written as is, without a newline added."""
        reporter = ProgressReporter(make_console(output))

        reporter.output("partial")
        reporter.output(" line\n")

        assert output.getvalue() == "partial line\n"

    def test_warning(self, output) -> None:
        ProgressReporter(make_console(output)).warning("Failed to save run state")

        assert output.getvalue() == "Warning: Failed to save run state\n"


class TestDryRunSummary:
    """Tests for print_dry_run_summary."""

    def test_plans_and_skips(self, output) -> None:
        """Steps that would run are listed, then skipped steps per reason."""
        result = RunResult(dry_run=True)
        result.add(StepOutcome("games", StepStatus.SKIPPED, SkipReason.TAGS))
        result.add(StepOutcome("winget", StepStatus.SKIPPED, SkipReason.OS))
        result.add(
            StepOutcome(
                "tools",
                StepStatus.DONE,
                plan=StepPlan(
                    "tools",
                    manager="apt-get",
                    packages=(
                        PackagePlan("git", installed=True),
                        PackagePlan("fd-find", alias_used=True),
                    ),
                    missing_shells=("pwsh",),
                ),
            )
        )
        result.add(StepOutcome("nvim", StepStatus.SKIPPED, SkipReason.WHEN))

        print_dry_run_summary(make_console(output), result)

        assert output.getvalue().splitlines() == [
            "🚀 Would run step 'tools'",
            "📦 Would install packages git (already installed), fd-find (using alias)",
            "⚠️ Step 'tools' uses shell(s) that are not currently available. "
            "Make sure they are installed in the previous steps: pwsh",
            "🚫 Ignored steps due to tag mismatch: games",
            "🚫 Ignored steps due to OS mismatch: winget",
            "🚫 Ignored steps due to failed when script: nvim",
        ]

    def test_missing_manager(self, output) -> None:
        result = RunResult(dry_run=True)
        result.add(
            StepOutcome(
                "gimp",
                StepStatus.DONE,
                plan=StepPlan(
                    "gimp",
                    manager="flatpak",
                    manager_installed=False,
                    packages=(PackagePlan("org.gimp.GIMP"),),
                ),
            )
        )

        print_dry_run_summary(make_console(output), result)

        assert "⚠️ Package manager flatpak is not installed" in output.getvalue()

    def test_nothing_to_run(self, output) -> None:
        """An empty plan says so and still lists skipped steps."""
        result = RunResult(dry_run=True)
        result.add(StepOutcome("a", StepStatus.SKIPPED, SkipReason.START))

        print_dry_run_summary(make_console(output), result)

        assert output.getvalue().splitlines() == [
            "❌ No steps would be run",
            "⏭️ Skipped steps before the start step: a",
        ]
