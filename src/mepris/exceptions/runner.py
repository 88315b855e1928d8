from __future__ import annotations

from mepris.exceptions.base import MeprisError


class RunnerError(MeprisError):
    """Base exception for step execution failures.

    Attributes:
        message: Human-readable error message.
    """

    pass


class StepFailure(RunnerError):
    """A step's pre_script, package installation or script failed.

    Raised by the executor after the remaining work has been persisted, so
    the message always tells the operator how to continue.

    Attributes:
        message: Human-readable error message.
        step_id: Id of the failed step.
        stage: Stage that failed (``pre_script``, ``packages`` or ``script``).
        command: The failing command line, when known.
        returncode: Exit code of the failing command, when known.
        resumable: True if a resume state was written for this failure.
    """

    def __init__(
        self,
        step_id: str,
        stage: str,
        detail: str,
        command: str | None = None,
        returncode: int | None = None,
        resumable: bool = False,
    ) -> None:
        """Initialize the StepFailure.

        Args:
            step_id: Id of the failed step.
            stage: Stage that failed.
            detail: Description of the failure.
            command: The failing command line.
            returncode: Exit code of the failing command.
            resumable: True if a resume state was written.
        """
        self.step_id = step_id
        self.stage = stage
        self.detail = detail
        self.command = command
        self.returncode = returncode
        self.resumable = resumable
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [f"Step '{self.step_id}' failed during {self.stage}: {self.detail}"]
        if self.command:
            parts.append(f"Command: {self.command}")
        if self.returncode is not None:
            parts.append(f"Exit code: {self.returncode}")
        if self.resumable:
            parts.append(
                "Run state was saved. Fix the problem and run 'mepris resume' "
                f"to continue from step '{self.step_id}'."
            )
        return "\n".join(parts)

    def mark_resumable(self) -> StepFailure:
        """Return a copy of this failure flagged as resumable."""
        return StepFailure(
            self.step_id,
            self.stage,
            self.detail,
            command=self.command,
            returncode=self.returncode,
            resumable=True,
        )


class PackageManagerNotFoundError(RunnerError):
    """The package manager selected for a step is not installed.

    Attributes:
        message: Human-readable error message.
        executable: The missing executable.
    """

    def __init__(self, message: str, executable: str | None = None) -> None:
        """Initialize the PackageManagerNotFoundError.

        Args:
            message: Human-readable error message.
            executable: The missing executable.
        """
        self.executable = executable
        super().__init__(message)


class WorkingDirectoryError(RunnerError):
    """Working directory does not exist or is not accessible.

    Attributes:
        message: Human-readable error message.
        path: The path that was not found.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize the WorkingDirectoryError.

        Args:
            message: Human-readable error message.
            path: The path that was not found.
        """
        self.path = path
        super().__init__(message)
