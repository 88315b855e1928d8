from __future__ import annotations

from pathlib import Path

from mepris.exceptions.base import MeprisError


class ResumeError(MeprisError):
    """Exception for resume state that is missing, corrupt or inconsistent.

    Distinct from ConfigError: a failed resume never falls back to a fresh
    run of some default configuration.

    Attributes:
        message: Human-readable error message.
        path: Location of the resume state file.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        """Initialize the ResumeError.

        Args:
            message: Human-readable error message.
            path: Location of the resume state file.
        """
        self.path = path
        super().__init__(message)
