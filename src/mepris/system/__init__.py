"""Facts about the running system and the programs Mepris starts."""

from __future__ import annotations

from mepris.system.command import CommandRunner, OutputCallback
from mepris.system.models import CommandResult
from mepris.system.os_info import OsInfo, Platform, detect_os_info
from mepris.system.packages import (
    PackageManager,
    PackageManagerResolver,
    PackageSource,
)
from mepris.system.shell import Shell, ShellRegistry, default_shell_for

__all__ = [
    "CommandResult",
    "CommandRunner",
    "OsInfo",
    "OutputCallback",
    "PackageManager",
    "PackageManagerResolver",
    "PackageSource",
    "Platform",
    "Shell",
    "ShellRegistry",
    "default_shell_for",
    "detect_os_info",
]
