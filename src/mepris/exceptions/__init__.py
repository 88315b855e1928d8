"""Mepris exception hierarchy.

All exceptions can be imported from this package:
    from mepris.exceptions import ConfigError, StepFailure, ResumeError
"""

from __future__ import annotations

# Base exception
from mepris.exceptions.base import MeprisError

# Configuration exceptions
from mepris.exceptions.config import (
    ConfigError,
    DuplicateStepError,
    IncludeCycleError,
    ScriptSyntaxError,
)

# Resume exceptions
from mepris.exceptions.resume import ResumeError

# Runner-related exceptions
from mepris.exceptions.runner import (
    PackageManagerNotFoundError,
    RunnerError,
    StepFailure,
    WorkingDirectoryError,
)

# Validation-related exceptions
from mepris.exceptions.validation import MeprisValidationError

__all__ = [
    # Base
    "MeprisError",
    # Config
    "ConfigError",
    "DuplicateStepError",
    "IncludeCycleError",
    "ScriptSyntaxError",
    # Resume
    "ResumeError",
    # Runner
    "PackageManagerNotFoundError",
    "RunnerError",
    "StepFailure",
    "WorkingDirectoryError",
    # Validation
    "MeprisValidationError",
]
