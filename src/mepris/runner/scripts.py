"""Shell syntax checking of step scripts.

Every script is checked before the run starts so a typo in the last step
does not surface after the first ones already changed the machine. Bash
scripts are checked with ``bash -n``; PowerShell scripts by compiling them
into a script block without running them.
"""

from __future__ import annotations

import contextlib
import hashlib
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from mepris.config.models import Script, Step
from mepris.exceptions import ScriptSyntaxError
from mepris.logging import get_logger
from mepris.system.command import CommandRunner
from mepris.system.shell import Shell, ShellRegistry

__all__ = ["ScriptChecker", "script_digest"]

logger = get_logger(__name__)


def script_digest(shell: Shell, code: str) -> str:
    """Identify a script by its shell and code."""
    digest = hashlib.sha256()
    digest.update(shell.executable.encode())
    digest.update(b"\0")
    digest.update(code.encode())
    return digest.hexdigest()


def _syntax_check_command(shell: Shell, path: Path) -> list[str]:
    if shell is Shell.PWSH:
        return [
            shell.executable,
            "-NoProfile",
            "-Command",
            f"[scriptblock]::Create((Get-Content -Raw '{path}'))",
        ]
    return [shell.executable, "-n", str(path)]


class ScriptChecker:
    """Checks scripts for syntax errors, remembering the ones that passed.

    Example:
        ```python
        checker = ScriptChecker(CommandRunner(), ShellRegistry())
        await checker.check_steps(steps, platform="linux", skip_unavailable=True)
        ```
    """

    def __init__(self, runner: CommandRunner, shells: ShellRegistry) -> None:
        self._runner = runner
        self._shells = shells
        self._checked: set[str] = set()

    def is_checked(self, shell: Shell, code: str) -> bool:
        return script_digest(shell, code) in self._checked

    async def check(self, shell: Shell, code: str) -> str | None:
        """Check one script.

        Args:
            shell: Shell the script is written for.
            code: Script body.

        Returns:
            None if the script is valid, else the shell's error message.
        """
        if self.is_checked(shell, code):
            return None

        fd, name = tempfile.mkstemp(prefix="mepris-", suffix=".ps1" if shell is Shell.PWSH else ".sh")
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(code)
            result = await self._runner.run(_syntax_check_command(shell, path))
        finally:
            with contextlib.suppress(OSError):
                path.unlink()

        if not result.success:
            message = (result.stderr or result.stdout).replace(f"{path}:", "").strip()
            return f"{shell.executable} syntax error: {message}"

        self._checked.add(script_digest(shell, code))
        return None

    async def check_script(
        self,
        step: Step,
        stage: str,
        script: Script,
        platform: str,
        *,
        skip_unavailable: bool = False,
    ) -> None:
        """Check one script of ``step``.

        Args:
            step: Step declaring the script.
            stage: ``when``, ``pre_script`` or ``script``.
            script: The script.
            platform: Platform used to pick the default shell.
            skip_unavailable: Silently accept scripts whose shell is not
                installed (it may be installed by an earlier step).

        Raises:
            ScriptSyntaxError: If the shell reports a syntax error.
        """
        shell = script.resolve_shell(platform, step.defaults)
        if skip_unavailable and not self._shells.is_available(shell):
            logger.debug("script_check_skipped", step_id=step.id, stage=stage, shell=shell.value)
            return
        error = await self.check(shell, script.code)
        if error is not None:
            raise ScriptSyntaxError(error, step_id=step.id, stage=stage, file=str(step.source_file))

    async def check_steps(
        self,
        steps: Iterable[Step],
        platform: str,
        *,
        skip_unavailable: bool = True,
    ) -> None:
        """Check every script of ``steps``.

        Raises:
            ScriptSyntaxError: On the first script with a syntax error.
        """
        for step in steps:
            for stage, script in step.scripts():
                await self.check_script(
                    step, stage, script, platform, skip_unavailable=skip_unavailable
                )
