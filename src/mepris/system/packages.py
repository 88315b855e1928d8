"""Package sources and the install commands of each package manager.

A :class:`PackageSource` is what a configuration file names in
``package_source``. Every source except ``aur`` is backed by exactly one
:class:`PackageManager`. ``aur`` is a meta-source: it is served by the first
installed AUR helper among ``yay`` and ``paru``, probed once per run.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Sequence
from enum import Enum

from mepris.exceptions import ConfigError
from mepris.logging import get_logger
from mepris.system.models import CommandResult
from mepris.system.os_info import OsInfo

__all__ = [
    "AUR_HELPERS",
    "LINUX_DEFAULT_MANAGERS",
    "PackageManager",
    "PackageManagerResolver",
    "PackageSource",
]

logger = get_logger(__name__)


class PackageSource(str, Enum):
    """Values accepted by ``package_source``."""

    APT = "apt"
    DNF = "dnf"
    PACMAN = "pacman"
    ZYPPER = "zypper"
    FLATPAK = "flatpak"
    BREW = "brew"
    SCOOP = "scoop"
    CHOCO = "choco"
    WINGET = "winget"
    CARGO = "cargo"
    NPM = "npm"
    AUR = "aur"

    @classmethod
    def parse(cls, value: str) -> PackageSource:
        """Parse a source name case-insensitively.

        Raises:
            ConfigError: If ``value`` is not a known source. AUR helper names
                (``yay``, ``paru``) are rejected in favor of ``aur``.
        """
        try:
            return cls(value.lower())
        except ValueError:
            accepted = ", ".join(source.value for source in cls)
            raise ConfigError(
                f"unknown package_source '{value.lower()}', expected one of [{accepted}]",
                field="package_source",
                value=value,
            ) from None


class PackageManager(str, Enum):
    """Concrete installer programs."""

    APT = "apt"
    DNF = "dnf"
    PACMAN = "pacman"
    ZYPPER = "zypper"
    YAY = "yay"
    PARU = "paru"
    FLATPAK = "flatpak"
    BREW = "brew"
    SCOOP = "scoop"
    CHOCO = "choco"
    WINGET = "winget"
    CARGO = "cargo"
    NPM = "npm"

    @property
    def executable(self) -> str:
        """Program looked up on PATH to decide whether the manager is installed."""
        return _EXECUTABLES.get(self, self.value)

    @property
    def source(self) -> PackageSource:
        """Package source this manager serves; also the key used in alias tables."""
        if self in AUR_HELPERS:
            return PackageSource.AUR
        return PackageSource(self.value)

    def install_commands(self, packages: Sequence[str]) -> list[list[str]]:
        """Build the commands installing ``packages``.

        Most managers install everything in one invocation. ``flatpak`` and
        ``winget`` take one package per invocation.

        Examples:
            >>> PackageManager.APT.install_commands(["git", "curl"])
            [['sudo', 'apt-get', 'install', '-y', 'git', 'curl']]
            >>> PackageManager.WINGET.install_commands(["Git.Git"])
            [['winget', 'install', '-e', '--id', 'Git.Git']]
        """
        if self is PackageManager.FLATPAK:
            return [["flatpak", "install", "-y", "flathub", pkg] for pkg in packages]
        if self is PackageManager.WINGET:
            return [["winget", "install", "-e", "--id", pkg] for pkg in packages]
        return [[*_INSTALL_PREFIXES[self], *packages]]

    def query_command(self, package: str) -> list[str]:
        """Build the command reporting whether ``package`` is installed."""
        if self is PackageManager.CARGO:
            return ["cargo", "install", "--list"]
        return [*_QUERY_PREFIXES[self], package]

    def is_installed(self, package: str, result: CommandResult) -> bool:
        """Interpret the output of :meth:`query_command` for ``package``."""
        if self is PackageManager.APT:
            return result.success and any(
                line.startswith("ii") for line in result.stdout.splitlines()
            )
        if self is PackageManager.SCOOP:
            # First line is a header; scoop matches substrings, so compare
            # the name column exactly.
            names = (line.split()[0] for line in result.stdout.splitlines()[1:] if line.split())
            return package in names
        if self in (
            PackageManager.WINGET,
            PackageManager.CHOCO,
            PackageManager.BREW,
            PackageManager.CARGO,
        ):
            return package in result.stdout
        return result.success


AUR_HELPERS: tuple[PackageManager, ...] = (PackageManager.YAY, PackageManager.PARU)

# Probed in order on Linux when no source is configured.
LINUX_DEFAULT_MANAGERS: tuple[PackageManager, ...] = (
    PackageManager.PACMAN,
    PackageManager.APT,
    PackageManager.DNF,
    PackageManager.ZYPPER,
)

_EXECUTABLES = {
    PackageManager.APT: "apt-get",
}

_INSTALL_PREFIXES: dict[PackageManager, tuple[str, ...]] = {
    PackageManager.APT: ("sudo", "apt-get", "install", "-y"),
    PackageManager.DNF: ("sudo", "dnf", "install", "-y"),
    PackageManager.PACMAN: ("sudo", "pacman", "-S", "--noconfirm", "--needed"),
    PackageManager.ZYPPER: ("sudo", "zypper", "install", "-y"),
    PackageManager.YAY: ("yay", "-S", "--noconfirm", "--needed"),
    PackageManager.PARU: ("paru", "-S", "--noconfirm", "--needed"),
    PackageManager.BREW: ("brew", "install"),
    PackageManager.SCOOP: ("scoop.cmd", "install"),
    PackageManager.CHOCO: ("choco", "install", "-y"),
    PackageManager.CARGO: ("cargo", "install"),
    PackageManager.NPM: ("npm", "i", "-g"),
}

_QUERY_PREFIXES: dict[PackageManager, tuple[str, ...]] = {
    PackageManager.PACMAN: ("pacman", "-Q"),
    PackageManager.YAY: ("pacman", "-Q"),
    PackageManager.PARU: ("pacman", "-Q"),
    PackageManager.APT: ("dpkg", "-l"),
    PackageManager.DNF: ("rpm", "-q"),
    PackageManager.ZYPPER: ("rpm", "-q"),
    PackageManager.FLATPAK: ("flatpak", "info"),
    PackageManager.BREW: ("brew", "list", "--versions"),
    PackageManager.WINGET: ("winget", "list", "--id"),
    PackageManager.SCOOP: ("scoop.cmd", "list"),
    PackageManager.CHOCO: ("choco", "list", "--local-only"),
    PackageManager.NPM: ("npm", "list", "--depth=0", "-g"),
}


class PackageManagerResolver:
    """Maps package sources to installed package managers for one run.

    The platform default manager and the AUR helper are each probed at most
    once and cached.

    Example:
        ```python
        resolver = PackageManagerResolver(os_info)
        manager = resolver.manager_for(PackageSource.AUR)  # yay or paru
        commands = manager.install_commands(["visual-studio-code-bin"])
        ```
    """

    def __init__(
        self,
        os_info: OsInfo,
        which: Callable[[str], str | None] = shutil.which,
        forced_default: PackageSource | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            os_info: Identity of the running system.
            which: PATH lookup, replaceable in tests.
            forced_default: Use this source as the platform default instead
                of detecting one.
        """
        self._os_info = os_info
        self._which = which
        self._forced_default = forced_default
        self._default: PackageSource | None = None
        self._aur_helper: PackageManager | None = None

    def is_available(self, manager: PackageManager) -> bool:
        return self._which(manager.executable) is not None

    def default_source(self) -> PackageSource:
        """Package source used when a step names none.

        ``brew`` on macOS, ``winget`` on Windows, and on Linux the first
        installed of pacman, apt, dnf and zypper.

        Raises:
            ConfigError: If no supported package manager is installed on Linux.
        """
        if self._default is None:
            self._default = self._detect_default()
            logger.debug("default_package_source", source=self._default.value)
        return self._default

    def _detect_default(self) -> PackageSource:
        if self._forced_default is not None:
            return self._forced_default
        platform = self._os_info.platform
        if platform == "macos":
            return PackageSource.BREW
        if platform == "windows":
            return PackageSource.WINGET
        for manager in LINUX_DEFAULT_MANAGERS:
            if self.is_available(manager):
                return manager.source
        names = ", ".join(m.executable for m in LINUX_DEFAULT_MANAGERS)
        raise ConfigError(f"Could not detect package manager (looked for {names})")

    def manager_for(self, source: PackageSource) -> PackageManager:
        """Return the concrete manager serving ``source``.

        For ``aur`` this is the first installed of yay and paru, or yay when
        neither is installed so the caller can report it as missing.
        """
        if source is not PackageSource.AUR:
            return PackageManager(source.value)
        if self._aur_helper is None:
            self._aur_helper = next(
                (helper for helper in AUR_HELPERS if self.is_available(helper)),
                AUR_HELPERS[0],
            )
            logger.debug("aur_helper_selected", helper=self._aur_helper.value)
        return self._aur_helper
