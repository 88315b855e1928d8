"""Resume state data structures.

A RunState is the serializable continuation of a failed run: the steps not
yet completed (starting with the one that failed), the defaults and filters
of the original invocation, and its mode flags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from mepris.config.models import Defaults, Step
from mepris.exceptions import ResumeError

__all__ = ["STATE_VERSION", "RunState"]

# Bumped whenever the serialized layout changes incompatibly.
STATE_VERSION = 1


@dataclass(frozen=True, slots=True)
class RunState:
    """Remaining work of a failed run.

    Attributes:
        config_path: Root provisioning file of the original run.
        steps: Steps still to process, beginning with the failed step.
        defaults: Defaults of the root provisioning file.
        failed_step_id: Id of the step the run stopped at.
        tags: Tag filter of the original run, as written.
        step_ids: Explicit ``--step`` selection of the original run.
        interactive: Whether the run asked before each step.
        dry_run: Whether the run was a dry run.
        saved_at: ISO 8601 timestamp of when the state was written.
    """

    config_path: Path
    steps: tuple[Step, ...]
    failed_step_id: str
    defaults: Defaults = field(default_factory=Defaults)
    tags: str | None = None
    step_ids: tuple[str, ...] = ()
    interactive: bool = False
    dry_run: bool = False
    saved_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @property
    def config_dir(self) -> Path:
        return self.config_path.parent

    def validate(self) -> None:
        """Check the state still describes runnable work.

        Raises:
            ResumeError: If there are no steps, the failed step is not the
                first one, ids repeat, or a step's directory no longer exists.
        """
        if not self.steps:
            raise ResumeError("Saved run has no remaining steps")
        ids = [step.id for step in self.steps]
        if ids[0] != self.failed_step_id:
            if self.failed_step_id in ids:
                raise ResumeError(
                    f"Saved run is inconsistent: failed step '{self.failed_step_id}' "
                    "is not the first remaining step"
                )
            raise ResumeError(
                f"Saved run is inconsistent: failed step '{self.failed_step_id}' "
                "is not among the remaining steps"
            )
        duplicates = sorted({step_id for step_id in ids if ids.count(step_id) > 1})
        if duplicates:
            raise ResumeError(f"Saved run repeats step ids: {', '.join(duplicates)}")
        for step in self.steps:
            if not step.source_dir.is_dir():
                raise ResumeError(
                    f"Directory of step '{step.id}' no longer exists: {step.source_dir}"
                )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for persistence."""
        return {
            "version": STATE_VERSION,
            "config_path": str(self.config_path),
            "failed_step_id": self.failed_step_id,
            "steps": [step.to_dict() for step in self.steps],
            "defaults": self.defaults.to_dict(),
            "tags": self.tags,
            "step_ids": list(self.step_ids),
            "interactive": self.interactive,
            "dry_run": self.dry_run,
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunState:
        """Deserialize from :meth:`to_dict` output.

        Raises:
            ResumeError: If the version is unsupported.
            KeyError: If a required key is missing.
            ValueError: If a value has the wrong shape.
        """
        version = data.get("version")
        if version != STATE_VERSION:
            raise ResumeError(f"Unsupported resume state version: {version!r}")
        return cls(
            config_path=Path(data["config_path"]),
            steps=tuple(Step.from_dict(step) for step in data["steps"]),
            failed_step_id=data["failed_step_id"],
            defaults=Defaults.from_dict(data.get("defaults")),
            tags=data.get("tags"),
            step_ids=tuple(data.get("step_ids", ())),
            interactive=bool(data.get("interactive", False)),
            dry_run=bool(data.get("dry_run", False)),
            saved_at=data["saved_at"],
        )
