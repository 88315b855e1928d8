"""Resolved configuration records.

These immutable records are produced by the config resolver and consumed by
the step executor. They serialize to plain dicts so a failed run can be
written to the resume state and rebuilt without reading the provisioning
files again.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from mepris.expressions.parser import Condition
from mepris.system.packages import PackageSource
from mepris.system.shell import Shell, default_shell_for

__all__ = [
    "Defaults",
    "ResolvedConfig",
    "Script",
    "Step",
]


@dataclass(frozen=True, slots=True)
class Script:
    """A block of shell code.

    Attributes:
        code: Script body passed to the shell.
        shell: Explicit shell, or None to use the defaults for the platform.
    """

    code: str
    shell: Shell | None = None

    def resolve_shell(self, platform: str, defaults: Defaults) -> Shell:
        """Pick the shell: explicit shell, then ``<platform>_shell`` default, then platform default."""
        if self.shell is not None:
            return self.shell
        return defaults.shell_for(platform) or default_shell_for(platform)

    @property
    def line_count(self) -> int:
        return len(self.code.splitlines())

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "shell": self.shell.value if self.shell else None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Script:
        shell = data.get("shell")
        return cls(code=data["code"], shell=Shell(shell) if shell else None)


@dataclass(frozen=True, slots=True)
class Defaults:
    """Values inherited by every step of a file and of the files it includes.

    Unset keys are None. :meth:`merge` applies a child file's explicit keys
    over the inherited ones.
    """

    windows_package_manager: PackageSource | None = None
    windows_shell: Shell | None = None
    linux_shell: Shell | None = None
    macos_shell: Shell | None = None

    def merge(self, overrides: Defaults | None) -> Defaults:
        """Return a copy with every key set in ``overrides`` replacing ours.

        Examples:
            >>> parent = Defaults(windows_package_manager=PackageSource.WINGET)
            >>> parent.merge(Defaults(linux_shell=Shell.PWSH)).windows_package_manager
            <PackageSource.WINGET: 'winget'>
        """
        if overrides is None:
            return self
        changes = {
            key: value for key, value in overrides._items() if value is not None
        }
        return replace(self, **changes)

    def shell_for(self, platform: str) -> Shell | None:
        """Default shell configured for ``platform``, if any."""
        return {
            "windows": self.windows_shell,
            "linux": self.linux_shell,
            "macos": self.macos_shell,
        }.get(platform)

    def _items(self) -> list[tuple[str, Any]]:
        return [
            ("windows_package_manager", self.windows_package_manager),
            ("windows_shell", self.windows_shell),
            ("linux_shell", self.linux_shell),
            ("macos_shell", self.macos_shell),
        ]

    def to_dict(self) -> dict[str, Any]:
        """Serialize the keys that are set."""
        return {key: value.value for key, value in self._items() if value is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Defaults:
        data = data or {}
        source = data.get("windows_package_manager")
        return cls(
            windows_package_manager=PackageSource(source) if source else None,
            windows_shell=_shell_or_none(data.get("windows_shell")),
            linux_shell=_shell_or_none(data.get("linux_shell")),
            macos_shell=_shell_or_none(data.get("macos_shell")),
        )


def _shell_or_none(value: str | None) -> Shell | None:
    return Shell(value) if value else None


def _script_or_none(data: dict[str, Any] | None) -> Script | None:
    return Script.from_dict(data) if data else None


@dataclass(frozen=True, slots=True)
class Step:
    """One unit of provisioning work.

    Attributes:
        id: Identifier, unique across the whole resolved configuration.
        source_file: Absolute path of the file declaring the step.
        os: Condition on the running operating system.
        tags: Tags used by ``--tags`` filters, in declaration order.
        env: Environment variables that must be set before the run starts.
        when: Script deciding at run time whether the step applies.
        pre_script: Script run before packages are installed.
        package_source: Source overriding the platform default for packages.
        packages: Package names, before alias resolution.
        script: Script run after packages are installed.
        defaults: Defaults effective in ``source_file``.
    """

    id: str
    source_file: Path
    os: Condition | None = None
    tags: tuple[str, ...] = ()
    env: tuple[str, ...] = ()
    when: Script | None = None
    pre_script: Script | None = None
    package_source: PackageSource | None = None
    packages: tuple[str, ...] = ()
    script: Script | None = None
    defaults: Defaults = field(default_factory=Defaults)

    @property
    def source_dir(self) -> Path:
        """Directory scripts of this step run in."""
        return self.source_file.parent

    def scripts(self) -> list[tuple[str, Script]]:
        """Scripts of the step paired with their stage name, in run order."""
        stages = [("when", self.when), ("pre_script", self.pre_script), ("script", self.script)]
        return [(stage, script) for stage, script in stages if script is not None]

    def shells(self, platform: str) -> list[Shell]:
        """Shells needed to run this step's scripts on ``platform``, deduplicated."""
        result: list[Shell] = []
        for _, script in self.scripts():
            shell = script.resolve_shell(platform, self.defaults)
            if shell not in result:
                result.append(shell)
        return result

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the resume state."""
        return {
            "id": self.id,
            "source_file": str(self.source_file),
            "os": self.os.raw if self.os else None,
            "tags": list(self.tags),
            "env": list(self.env),
            "when": self.when.to_dict() if self.when else None,
            "pre_script": self.pre_script.to_dict() if self.pre_script else None,
            "package_source": self.package_source.value if self.package_source else None,
            "packages": list(self.packages),
            "script": self.script.to_dict() if self.script else None,
            "defaults": self.defaults.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        """Deserialize from :meth:`to_dict` output.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If an enum value is unknown.
            ExpressionParseError: If the stored ``os`` condition is invalid.
        """
        os_expr = data.get("os")
        source = data.get("package_source")
        return cls(
            id=data["id"],
            source_file=Path(data["source_file"]),
            os=Condition.parse(os_expr) if os_expr else None,
            tags=tuple(data.get("tags", ())),
            env=tuple(data.get("env", ())),
            when=_script_or_none(data.get("when")),
            pre_script=_script_or_none(data.get("pre_script")),
            package_source=PackageSource(source) if source else None,
            packages=tuple(data.get("packages", ())),
            script=_script_or_none(data.get("script")),
            defaults=Defaults.from_dict(data.get("defaults")),
        )


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    """Result of resolving a root provisioning file and its includes.

    Attributes:
        root_file: Absolute path of the root file.
        steps: All steps in execution order.
        defaults: Defaults effective in the root file.
        files: Every file read, in the order they were expanded.
    """

    root_file: Path
    steps: tuple[Step, ...]
    defaults: Defaults = field(default_factory=Defaults)
    files: tuple[Path, ...] = ()

    @property
    def root_dir(self) -> Path:
        return self.root_file.parent

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def all_tags(self) -> list[str]:
        """Tags declared by any step, sorted and deduplicated."""
        return sorted({tag for step in self.steps for tag in step.tags})
