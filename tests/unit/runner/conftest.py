from __future__ import annotations

import io
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import pytest
from rich.console import Console

from mepris.config.aliases import AliasTable
from mepris.config.models import Step
from mepris.resume.store import MemoryResumeStore
from mepris.runner.context import RunContext
from mepris.runner.executor import StepExecutor
from mepris.runner.interactive import StepPrompter
from mepris.system.models import CommandResult
from mepris.system.os_info import OsInfo
from mepris.system.packages import PackageManagerResolver, PackageSource
from mepris.system.shell import Shell, ShellRegistry

UBUNTU = OsInfo(platform="linux", id="ubuntu", id_like=("debian",))


@dataclass
class Call:
    """One command seen by FakeCommandRunner."""

    mode: str
    command: list[str]
    cwd: Path | None

    @property
    def text(self) -> str:
        return " ".join(self.command)


@dataclass
class FakeCommandRunner:
    """Records commands instead of starting processes.

    ``rules`` map a substring of the joined command line to the result the
    command returns; the first matching rule wins, unmatched commands succeed.
    """

    rules: list[tuple[str, CommandResult]] = field(default_factory=list)
    calls: list[Call] = field(default_factory=list)

    def respond(self, fragment: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.rules.insert(0, (fragment, CommandResult(returncode, stdout=stdout, stderr=stderr)))

    def _result(self, command: Sequence[str]) -> CommandResult:
        text = " ".join(command)
        for fragment, result in self.rules:
            if fragment in text:
                return result
        return CommandResult(0)

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        self.calls.append(Call("run", list(command), cwd))
        return self._result(command)

    async def execute(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        on_output=None,
    ) -> CommandResult:
        self.calls.append(Call("execute", list(command), cwd))
        result = self._result(command)
        if on_output is not None and result.stdout:
            on_output(result.stdout)
        return result

    @property
    def executed(self) -> list[str]:
        """Command lines started with output forwarding (scripts and installs)."""
        return [call.text for call in self.calls if call.mode == "execute"]

    @property
    def scripts(self) -> list[str]:
        """Code of every script run with ``-c``, in order, either mode."""
        return [call.command[-1] for call in self.calls if "-c" in call.command]

    @property
    def syntax_checks(self) -> list[Call]:
        return [call for call in self.calls if "-n" in call.command]


def which_from(*installed: str):
    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in installed else None

    return which


@pytest.fixture
def runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def store() -> MemoryResumeStore:
    return MemoryResumeStore()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "machine.yaml"
    path.write_text("steps: []\n")
    return path


@pytest.fixture
def step(config_path: Path):
    """Build a Step declared in ``config_path``.

    Example:
        >>> def test_x(step):
        ...     s = step("git", packages=("git",))
    """

    def _step(step_id: str, **kwargs) -> Step:
        return Step(id=step_id, source_file=config_path, **kwargs)

    return _step


@pytest.fixture
def make_executor(runner: FakeCommandRunner, store: MemoryResumeStore, output: io.StringIO):
    """Build a StepExecutor wired to fakes.

    Args accepted by the returned factory:
        env: Run environment.
        os_info: Identity of the system.
        shells: Installed shells.
        installed: Executables on PATH.
        aliases: Alias table.
        answers: Interactive answers, consumed in order.
        forced_default: Default package source.
    """

    def _make(
        *,
        env: Mapping[str, str] | None = None,
        os_info: OsInfo = UBUNTU,
        shells: Iterable[Shell] = (Shell.BASH,),
        installed: Iterable[str] = ("apt-get", "bash"),
        aliases: AliasTable | None = None,
        answers: Iterable[str] = (),
        forced_default: PackageSource | None = None,
    ) -> StepExecutor:
        console = Console(file=output, width=200, force_terminal=False)
        pending = iter(answers)
        return StepExecutor(
            RunContext(os_info=os_info, environment=MappingProxyType(dict(env or {}))),
            store,
            aliases=aliases,
            runner=runner,  # type: ignore[arg-type]
            shells=ShellRegistry(available=shells),
            packages=PackageManagerResolver(
                os_info, which=which_from(*installed), forced_default=forced_default
            ),
            console=console,
            prompter=StepPrompter(console, ask=lambda question, choices: next(pending)),
        )

    return _make
