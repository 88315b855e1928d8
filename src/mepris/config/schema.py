"""Pydantic schema for provisioning files.

A provisioning file is a YAML mapping with three optional keys::

    includes:
      - common.yaml
    defaults:
      windows_package_manager: scoop
      linux_shell: bash
    steps:
      - id: git
        os: "linux || macos"
        tags: [dev]
        packages: [git]
        script: git config --global init.defaultBranch main

Scripts accept a short form (a string, run with the default shell) and a
long form (``{shell: pwsh, run: "..."}``).
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from mepris.config.models import Defaults, Script
from mepris.exceptions import ConfigError
from mepris.expressions.errors import ExpressionParseError
from mepris.expressions.parser import Condition
from mepris.system.packages import PackageSource
from mepris.system.shell import Shell

__all__ = [
    "ConfigFileRecord",
    "DefaultsRecord",
    "ScriptRecord",
    "StepRecord",
]


def _parse_source(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return PackageSource.parse(value)
    except ConfigError as e:
        raise ValueError(e.message) from None


def _parse_shell(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    return value


SourceValue = Annotated[PackageSource | None, BeforeValidator(_parse_source)]
ShellValue = Annotated[Shell | None, BeforeValidator(_parse_shell)]


class ScriptRecord(BaseModel):
    """Long form of a script: ``{shell: bash|pwsh, run: <code>}``."""

    model_config = ConfigDict(extra="forbid")

    shell: Annotated[Shell, BeforeValidator(_parse_shell)]
    run: str


ScriptField = str | ScriptRecord


def _to_script(value: ScriptField | None) -> Script | None:
    if value is None:
        return None
    if isinstance(value, str):
        return Script(code=value)
    return Script(code=value.run, shell=value.shell)


class DefaultsRecord(BaseModel):
    """The ``defaults`` section of a file."""

    model_config = ConfigDict(extra="forbid")

    windows_package_manager: SourceValue = None
    windows_shell: ShellValue = None
    linux_shell: ShellValue = None
    macos_shell: ShellValue = None

    def to_defaults(self) -> Defaults:
        return Defaults(
            windows_package_manager=self.windows_package_manager,
            windows_shell=self.windows_shell,
            linux_shell=self.linux_shell,
            macos_shell=self.macos_shell,
        )


class StepRecord(BaseModel):
    """One entry of the ``steps`` list."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    os: str | None = None
    tags: list[str] = Field(default_factory=list)
    env: list[str] = Field(default_factory=list)
    when: ScriptField | None = None
    pre_script: ScriptField | None = None
    package_source: SourceValue = None
    packages: list[str] = Field(default_factory=list)
    script: ScriptField | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Step id cannot be empty or whitespace")
        return v

    @field_validator("os")
    @classmethod
    def validate_os(cls, v: str | None) -> str | None:
        """Reject malformed conditions when the file is read."""
        if v is None:
            return v
        try:
            Condition.parse(v)
        except ExpressionParseError as e:
            raise ValueError(f"Failed to parse OS expression '{v}': {e.message}") from None
        return v

    def condition(self) -> Condition | None:
        return Condition.parse(self.os) if self.os is not None else None

    def when_script(self) -> Script | None:
        return _to_script(self.when)

    def pre_script_block(self) -> Script | None:
        return _to_script(self.pre_script)

    def script_block(self) -> Script | None:
        return _to_script(self.script)


class ConfigFileRecord(BaseModel):
    """Top-level schema of a provisioning file."""

    model_config = ConfigDict(extra="forbid")

    includes: list[str] = Field(default_factory=list)
    defaults: DefaultsRecord | None = None
    steps: list[StepRecord] = Field(default_factory=list)

    @field_validator("includes", "steps", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v
