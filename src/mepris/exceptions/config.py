from __future__ import annotations

from pathlib import Path
from typing import Any

from mepris.exceptions.base import MeprisError


class ConfigError(MeprisError):
    """Exception for configuration loading, parsing, and validation errors.

    Raised when a provisioning file cannot be read, decoded, or resolved into
    a single step sequence. This includes YAML syntax errors, schema
    violations, include cycles and duplicate step ids. Always raised before
    any step executes.

    Attributes:
        message: Human-readable error message describing the configuration issue.
        field: Optional field name that caused the error (e.g., "package_source").
        value: Optional value that failed validation (for debugging).
        file: Optional path of the file the error originates from.

    Examples:
        ```python
        raise ConfigError(
            "unknown package_source 'snap'",
            field="package_source",
            value="snap",
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        file: Path | str | None = None,
    ) -> None:
        """Initialize the ConfigError.

        Args:
            message: Human-readable error message.
            field: Optional field name that caused the error.
            value: Optional value that failed validation.
            file: Optional path of the offending file.
        """
        self.field = field
        self.value = value
        self.file = file
        super().__init__(message)


class IncludeCycleError(ConfigError):
    """Raised when a file includes itself, directly or transitively.

    Attributes:
        message: Human-readable error message.
        cycle: Files forming the cycle, first file repeated at the end.
    """

    def __init__(self, cycle: list[Path]) -> None:
        """Initialize the IncludeCycleError.

        Args:
            cycle: Files forming the cycle, in traversal order.
        """
        self.cycle = tuple(cycle)
        chain = " -> ".join(p.name for p in cycle)
        super().__init__(f"Include cycle detected: {chain}", file=cycle[-1])


class DuplicateStepError(ConfigError):
    """Raised when two steps share the same id in the flattened sequence.

    File names are shown as given, usually relative to the directory of
    the root file.

    Attributes:
        message: Human-readable error message.
        step_id: The duplicate step id.
        first_file: File declaring the first occurrence.
        second_file: File declaring the second occurrence.
        repeated_include: True when both occurrences come from one file
            that is included more than once.
    """

    def __init__(
        self,
        step_id: str,
        first_file: str,
        second_file: str,
        *,
        repeated_include: bool = False,
    ) -> None:
        """Initialize the DuplicateStepError.

        Args:
            step_id: The duplicate step id.
            first_file: File declaring the first occurrence.
            second_file: File declaring the second occurrence.
            repeated_include: Whether the duplicate comes from including
                ``first_file`` more than once.
        """
        self.step_id = step_id
        self.first_file = first_file
        self.second_file = second_file
        self.repeated_include = repeated_include
        if repeated_include:
            message = (
                f"Duplicate step '{step_id}': file '{first_file}' "
                "is included more than once"
            )
        elif first_file == second_file:
            message = f"Duplicate step '{step_id}' in file '{first_file}'"
        else:
            message = (
                f"Duplicate step '{step_id}' in files "
                f"'{first_file}' and '{second_file}'"
            )
        super().__init__(message, field="id", value=step_id, file=second_file)


class ScriptSyntaxError(ConfigError):
    """Raised when a step script fails its shell syntax check.

    Attributes:
        message: Human-readable error message.
        step_id: Step declaring the script.
        stage: Which script failed (``when``, ``pre_script`` or ``script``).
    """

    def __init__(
        self,
        message: str,
        step_id: str,
        stage: str,
        file: str | None = None,
    ) -> None:
        """Initialize the ScriptSyntaxError.

        Args:
            message: Shell-reported syntax error.
            step_id: Step declaring the script.
            stage: Which script failed.
            file: File declaring the step.
        """
        self.step_id = step_id
        self.stage = stage
        location = f" in {file}" if file else ""
        super().__init__(
            f"Failed to check {stage}{location}, step '{step_id}': {message}",
            field=stage,
            file=file,
        )
