"""Records describing what the executor did with each step."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mepris.expressions.parser import Condition

__all__ = [
    "PackagePlan",
    "RunOptions",
    "RunResult",
    "SkipReason",
    "StepOutcome",
    "StepPlan",
    "StepStatus",
]


class StepStatus(str, Enum):
    """Final state of a step in a run."""

    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Why a step was skipped."""

    TAGS = "tags"
    OS = "os"
    START = "start"
    WHEN = "when"
    DECLINED = "declined"


@dataclass(frozen=True, slots=True)
class PackagePlan:
    """A package a dry run would install.

    Attributes:
        name: Name passed to the package manager, after alias resolution.
        alias_used: True if an alias replaced the declared name.
        installed: True if the package manager reports it installed.
    """

    name: str
    alias_used: bool = False
    installed: bool = False

    def __str__(self) -> str:
        text = self.name
        if self.alias_used:
            text += " (using alias)"
        if self.installed:
            text += " (already installed)"
        return text


@dataclass(frozen=True, slots=True)
class StepPlan:
    """What a dry run found out about a step it would run.

    Attributes:
        step_id: Id of the step.
        manager: Executable of the package manager, if the step has packages.
        manager_installed: Whether that executable is on PATH.
        packages: Packages that would be installed.
        missing_shells: Shells the step's scripts need that are not installed.
    """

    step_id: str
    manager: str | None = None
    manager_installed: bool = True
    packages: tuple[PackagePlan, ...] = ()
    missing_shells: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Classification of one step after a run."""

    step_id: str
    status: StepStatus
    reason: SkipReason | None = None
    plan: StepPlan | None = None


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Filters and flags of a run.

    Attributes:
        tags: Tag filter.
        step_ids: Explicit step selection, in the order given.
        start_step_id: Skip steps before this one.
        interactive: Ask before each step.
        dry_run: Classify steps without changing the system.
        fresh: The run starts from the configuration rather than a saved
            state, so a stale saved state is discarded first.
    """

    tags: Condition | None = None
    step_ids: tuple[str, ...] = ()
    start_step_id: str | None = None
    interactive: bool = False
    dry_run: bool = False
    fresh: bool = True


@dataclass(slots=True)
class RunResult:
    """Outcomes of a run, in the order steps were classified."""

    outcomes: list[StepOutcome] = field(default_factory=list)
    dry_run: bool = False
    aborted: bool = False

    def add(self, outcome: StepOutcome) -> None:
        self.outcomes.append(outcome)

    def ids(self, status: StepStatus, reason: SkipReason | None = None) -> list[str]:
        """Ids of steps with ``status`` (and ``reason``, if given)."""
        return [
            outcome.step_id
            for outcome in self.outcomes
            if outcome.status is status and (reason is None or outcome.reason is reason)
        ]

    @property
    def plans(self) -> list[StepPlan]:
        return [outcome.plan for outcome in self.outcomes if outcome.plan is not None]

    @property
    def completed(self) -> list[str]:
        return self.ids(StepStatus.DONE)
