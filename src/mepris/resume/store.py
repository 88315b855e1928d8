"""Resume state stores.

There is one resume state per user. It is written when a step fails, read
by ``mepris resume`` and removed once a run completes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from mepris.exceptions import ResumeError
from mepris.expressions.errors import ExpressionParseError
from mepris.logging import get_logger
from mepris.resume.data import RunState
from mepris.utils.atomic import atomic_write_json

__all__ = ["FileResumeStore", "MemoryResumeStore", "ResumeStore"]

logger = get_logger(__name__)


class ResumeStore(Protocol):
    """Protocol for resume state persistence.

    All methods are async for consistency with the async executor.
    """

    async def save(self, state: RunState) -> None:
        """Replace the stored state atomically."""
        ...

    async def load(self) -> RunState:
        """Load and validate the stored state.

        Raises:
            ResumeError: If there is no state or it is unusable.
        """
        ...

    async def exists(self) -> bool:
        """Return True if a state is stored."""
        ...

    async def clear(self) -> None:
        """Remove the stored state, if any."""
        ...


class FileResumeStore:
    """Resume state kept in a single JSON file.

    Writes go through a temporary file renamed over the target, so an
    interrupted save leaves either the previous state or the new one.
    """

    def __init__(self, path: Path | str) -> None:
        """Initialize the store.

        Args:
            path: Location of the state file.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def save(self, state: RunState) -> None:
        """Save the state with an atomic write.

        Raises:
            ResumeError: If the file cannot be written.
        """
        try:
            atomic_write_json(self._path, state.to_dict())
        except OSError as e:
            raise ResumeError(f"Failed to save run state: {e}", path=self._path) from e
        logger.info(
            "run_state_saved",
            path=str(self._path),
            failed_step=state.failed_step_id,
            remaining=len(state.steps),
        )

    async def load(self) -> RunState:
        """Load the state from disk.

        Raises:
            ResumeError: If the file is missing, unreadable, corrupt or
                inconsistent.
        """
        if not self._path.exists():
            raise ResumeError(
                f"No saved run to resume (expected state at {self._path})",
                path=self._path,
            )
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ResumeError(f"Failed to read run state: {e}", path=self._path) from e
        except json.JSONDecodeError as e:
            raise ResumeError(
                f"Run state at {self._path} is corrupt: {e}", path=self._path
            ) from e
        if not isinstance(data, dict):
            raise ResumeError(f"Run state at {self._path} is corrupt", path=self._path)

        try:
            state = RunState.from_dict(data)
        except (KeyError, TypeError, ValueError, ExpressionParseError) as e:
            raise ResumeError(
                f"Run state at {self._path} is corrupt: {e!r}", path=self._path
            ) from e
        state.validate()
        return state

    async def exists(self) -> bool:
        return self._path.exists()

    async def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            logger.info("run_state_cleared", path=str(self._path))


class MemoryResumeStore:
    """In-memory resume store for testing.

    Records every save so tests can inspect the history.
    """

    def __init__(self, state: RunState | None = None) -> None:
        self._state = state
        self.saved: list[RunState] = []
        self.cleared = 0

    async def save(self, state: RunState) -> None:
        self._state = state
        self.saved.append(state)

    async def load(self) -> RunState:
        if self._state is None:
            raise ResumeError("No saved run to resume")
        self._state.validate()
        return self._state

    async def exists(self) -> bool:
        return self._state is not None

    async def clear(self) -> None:
        self._state = None
        self.cleared += 1
