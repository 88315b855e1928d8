"""Async child process execution.

Provides the CommandRunner used for every external program Mepris starts:
shell scripts, package manager invocations and availability probes.
Commands never run concurrently; each call awaits the child to completion.
"""

from __future__ import annotations

import asyncio
import codecs
import os
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from mepris.exceptions import WorkingDirectoryError
from mepris.logging import get_logger
from mepris.system.models import CommandResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

__all__ = ["CommandRunner", "OutputCallback"]

# Bytes read per chunk when forwarding output. Output is forwarded as it
# arrives rather than per line so prompts without a newline stay visible.
CHUNK_SIZE = 4096

OutputCallback = Callable[[str], None]

logger = get_logger(__name__)


class CommandRunner:
    """Execute commands with a working directory and environment.

    Two modes are offered:

    - :meth:`run` captures stdout and stderr, for probes and ``when`` scripts
      whose output is not shown.
    - :meth:`execute` forwards combined output to a callback as it arrives
      while stdin stays attached to the terminal, so ``sudo`` prompts and
      progress bars behave as in a normal shell.

    Example:
        ```python
        runner = CommandRunner()
        result = await runner.execute(
            ["bash", "-c", "make install"],
            cwd=Path("/home/me/dotfiles"),
            on_output=console.out,
        )
        if not result.success:
            print(result.describe_exit())
        ```
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the CommandRunner.

        Args:
            env: Environment variables merged over os.environ for every command.
        """
        self._extra_env = dict(env or {})
        self._process: asyncio.subprocess.Process | None = None
        self._start_time: float | None = None

    def _validate_cwd(self, cwd: Path | None) -> None:
        if cwd is not None and not cwd.is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {cwd}",
                path=str(cwd),
            )

    def _build_env(self, extra_env: Mapping[str, str] | None = None) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self._extra_env)
        if extra_env:
            env.update(extra_env)
        return env

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Execute a command and capture its output.

        Args:
            command: Command and arguments (no shell expansion).
            cwd: Working directory for the command.
            env: Additional environment variables for this command.

        Returns:
            CommandResult with returncode, stdout, stderr and duration_ms.
            A missing executable yields returncode 127, a non-executable
            one 126.

        Raises:
            WorkingDirectoryError: If ``cwd`` does not exist.
        """
        self._validate_cwd(cwd)
        start_time = time.monotonic()
        logger.debug("command_started", command=list(command), cwd=str(cwd))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=self._build_env(env),
            )
            stdout_bytes, stderr_bytes = await process.communicate()
        except FileNotFoundError:
            return CommandResult(returncode=127, stderr=f"Command not found: {command[0]}")
        except PermissionError:
            return CommandResult(returncode=126, stderr=f"Permission denied: {command[0]}")

        result = CommandResult(
            returncode=process.returncode if process.returncode is not None else 0,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        logger.debug(
            "command_finished",
            command=list(command),
            returncode=result.returncode,
            duration_ms=result.duration_ms,
        )
        return result

    async def stream(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> AsyncIterator[str]:
        """Stream combined stdout and stderr of a command in chunks.

        Call :meth:`wait` after iteration completes to get the CommandResult.

        Args:
            command: Command and arguments (no shell expansion).
            cwd: Working directory for the command.
            env: Additional environment variables for this command.

        Yields:
            Decoded output chunks in arrival order.

        Raises:
            WorkingDirectoryError: If ``cwd`` does not exist.
            FileNotFoundError: If the executable does not exist.
        """
        self._validate_cwd(cwd)
        self._start_time = time.monotonic()
        logger.debug("command_started", command=list(command), cwd=str(cwd))

        self._process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=cwd,
            env=self._build_env(env),
        )
        assert self._process.stdout is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await self._process.stdout.read(CHUNK_SIZE)
            if not data:
                break
            text = decoder.decode(data)
            if text:
                yield text
        tail = decoder.decode(b"", final=True)
        if tail:
            yield tail
        await self._process.wait()

    async def wait(self) -> CommandResult:
        """Get the final result after :meth:`stream` completes.

        Raises:
            RuntimeError: If no streaming process is active.
        """
        if self._process is None or self._start_time is None:
            raise RuntimeError("No streaming process active. Call stream() first.")
        returncode = await self._process.wait()
        duration_ms = int((time.monotonic() - self._start_time) * 1000)
        logger.debug("command_finished", returncode=returncode, duration_ms=duration_ms)
        return CommandResult(returncode=returncode, duration_ms=duration_ms)

    async def execute(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        on_output: OutputCallback | None = None,
    ) -> CommandResult:
        """Execute a command, forwarding its output as it arrives.

        Args:
            command: Command and arguments (no shell expansion).
            cwd: Working directory for the command.
            env: Additional environment variables for this command.
            on_output: Receives each output chunk. Output is discarded if None.

        Returns:
            CommandResult with the exit code; output is not retained.

        Raises:
            WorkingDirectoryError: If ``cwd`` does not exist.
        """
        try:
            async for chunk in self.stream(command, cwd=cwd, env=env):
                if on_output is not None:
                    on_output(chunk)
        except FileNotFoundError:
            return CommandResult(returncode=127, stderr=f"Command not found: {command[0]}")
        except PermissionError:
            return CommandResult(returncode=126, stderr=f"Permission denied: {command[0]}")
        return await self.wait()
