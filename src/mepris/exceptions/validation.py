from __future__ import annotations

from collections.abc import Mapping, Sequence

from mepris.exceptions.base import MeprisError


class MeprisValidationError(MeprisError):
    """Exception for run-readiness failures detected before any step body runs.

    Named MeprisValidationError to avoid conflict with Pydantic's ValidationError.
    Raised when steps selected for a run require environment variables that
    are set neither in the process environment nor in the ``.env`` file.

    Attributes:
        message: Human-readable error message.
        missing: Mapping of variable name to the ids of the steps requiring it.
    """

    def __init__(self, missing: Mapping[str, Sequence[str]]) -> None:
        """Initialize the MeprisValidationError.

        Args:
            missing: Variable name mapped to the ids of steps requiring it.
        """
        self.missing = {name: tuple(steps) for name, steps in missing.items()}
        lines = ["Undefined environment variables:"]
        for name, steps in self.missing.items():
            lines.append(f"{name} (required by steps {', '.join(steps)})")
        super().__init__("\n".join(lines))
