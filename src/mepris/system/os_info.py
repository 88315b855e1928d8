"""Detection of the running platform and Linux distribution.

The platform is one of ``linux``, ``macos`` or ``windows``. On Linux the
distribution ``ID`` and ``ID_LIKE`` values are read from ``/etc/os-release``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from mepris.exceptions import MeprisError

__all__ = [
    "OS_RELEASE_PATH",
    "OsInfo",
    "Platform",
    "current_platform",
    "detect_os_info",
    "parse_os_release",
]

Platform = Literal["linux", "macos", "windows"]

OS_RELEASE_PATH = Path("/etc/os-release")


@dataclass(frozen=True, slots=True)
class OsInfo:
    """Identity of the running operating system.

    Attributes:
        platform: Platform name.
        id: Distribution ``ID`` (Linux only).
        id_like: Distribution ``ID_LIKE`` entries (Linux only).
    """

    platform: Platform
    id: str | None = None
    id_like: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_linux(self) -> bool:
        return self.platform == "linux"

    def describe(self) -> str:
        """Short human-readable description, e.g. ``linux (manjaro, like arch)``."""
        if self.id is None:
            return self.platform
        if self.id_like:
            return f"{self.platform} ({self.id}, like {' '.join(self.id_like)})"
        return f"{self.platform} ({self.id})"


def current_platform() -> Platform:
    """Return the platform of the running interpreter.

    Raises:
        MeprisError: On platforms other than Linux, macOS and Windows.
    """
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "darwin":
        return "macos"
    if sys.platform in ("win32", "cygwin"):
        return "windows"
    raise MeprisError(f"Unsupported platform: {sys.platform}")


def parse_os_release(text: str) -> dict[str, str]:
    """Parse the ``KEY=value`` lines of an os-release file.

    Blank lines and ``#`` comments are skipped. Surrounding double quotes
    are stripped from values.

    Args:
        text: Contents of an os-release file.

    Returns:
        Mapping of keys to unquoted values.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def detect_os_info(
    platform: Platform | None = None,
    os_release_path: Path = OS_RELEASE_PATH,
) -> OsInfo:
    """Gather the identity of the running system.

    Args:
        platform: Platform override; detected when None.
        os_release_path: Location of the os-release file.

    Returns:
        OsInfo for the running system. ``id`` and ``id_like`` are only
        populated on Linux.

    Raises:
        MeprisError: If os-release cannot be read on Linux.
    """
    platform = platform or current_platform()
    if platform != "linux":
        return OsInfo(platform=platform)

    try:
        text = os_release_path.read_text(encoding="utf-8")
    except OSError as e:
        raise MeprisError(f"Failed to read {os_release_path}: {e}") from e

    values = parse_os_release(text)
    return OsInfo(
        platform=platform,
        id=values.get("ID"),
        id_like=tuple(values.get("ID_LIKE", "").split()),
    )
