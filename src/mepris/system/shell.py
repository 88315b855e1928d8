"""Supported shells and their availability on the running system."""

from __future__ import annotations

import shutil
from collections.abc import Callable, Iterable
from enum import Enum

__all__ = [
    "Shell",
    "ShellRegistry",
    "default_shell_for",
]


class Shell(str, Enum):
    """Interpreter used to run a script block."""

    BASH = "bash"
    PWSH = "pwsh"

    @property
    def executable(self) -> str:
        return self.value

    def command(self, code: str) -> list[str]:
        """Build the argument vector that runs ``code`` with this shell.

        Examples:
            >>> Shell.BASH.command("echo hi")
            ['bash', '-c', 'echo hi']
            >>> Shell.PWSH.command("Write-Output hi")
            ['pwsh', '-NoProfile', '-Command', 'Write-Output hi']
        """
        if self is Shell.PWSH:
            return [self.executable, "-NoProfile", "-Command", code]
        return [self.executable, "-c", code]


def default_shell_for(platform: str) -> Shell:
    """Shell used when neither the script nor the defaults choose one."""
    return Shell.PWSH if platform == "windows" else Shell.BASH


class ShellRegistry:
    """Records which shells are installed, probing each at most once.

    Tests pass ``available`` to pin the set of installed shells instead of
    consulting PATH.

    Example:
        ```python
        shells = ShellRegistry()
        if not shells.is_available(Shell.PWSH):
            console.print("pwsh is not installed")
        ```
    """

    def __init__(
        self,
        available: Iterable[Shell] | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self._which = which
        self._cache: dict[Shell, bool] = {}
        if available is not None:
            pinned = set(available)
            self._cache = {shell: shell in pinned for shell in Shell}

    def is_available(self, shell: Shell) -> bool:
        if shell not in self._cache:
            self._cache[shell] = self._which(shell.executable) is not None
        return self._cache[shell]

    def missing(self, shells: Iterable[Shell]) -> list[Shell]:
        """Return the shells from ``shells`` that are not installed, deduplicated."""
        result: list[Shell] = []
        for shell in shells:
            if shell not in result and not self.is_available(shell):
                result.append(shell)
        return result
