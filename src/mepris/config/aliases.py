"""Package name aliases.

Package names differ between package sources (``fd`` is ``fd-find`` on
apt). An alias file maps a package's default name to its name per source::

    fd:
      apt: fd-find
    firefox:
      flatpak: org.mozilla.firefox

Two tables are consulted: a global one in the user config directory and a
local ``pkg_aliases.yaml`` next to the root provisioning file. They are
merged per (package, source) pair with local entries winning.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import RootModel, ValidationError

from mepris.exceptions import ConfigError
from mepris.logging import get_logger
from mepris.system.packages import PackageSource

__all__ = [
    "ALIASES_FILE_NAME",
    "AliasTable",
    "load_alias_file",
    "load_aliases",
]

logger = get_logger(__name__)

ALIASES_FILE_NAME = "pkg_aliases.yaml"


class _AliasFileRecord(RootModel[dict[str, dict[str, str]]]):
    """Schema of an alias file: package -> source -> name."""


class AliasTable:
    """Lookup of per-source package name overrides.

    Example:
        ```python
        table = AliasTable({"fd": {PackageSource.APT: "fd-find"}})
        table.resolve("fd", PackageSource.APT)     # "fd-find"
        table.resolve("fd", PackageSource.PACMAN)  # "fd"
        ```
    """

    def __init__(
        self,
        entries: Mapping[str, Mapping[PackageSource, str]] | None = None,
    ) -> None:
        self._entries: dict[str, dict[PackageSource, str]] = {
            package: dict(names) for package, names in (entries or {}).items()
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AliasTable):
            return NotImplemented
        return self._entries == other._entries

    def resolve(self, package: str, source: PackageSource) -> str:
        """Return the name of ``package`` for ``source``, or ``package`` itself."""
        return self._entries.get(package, {}).get(source, package)

    def merge(self, overrides: AliasTable) -> AliasTable:
        """Return a table where entries of ``overrides`` shadow ours per (package, source)."""
        merged = {package: dict(names) for package, names in self._entries.items()}
        for package, names in overrides._entries.items():
            merged.setdefault(package, {}).update(names)
        return AliasTable(merged)

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {
            package: {source.value: name for source, name in names.items()}
            for package, names in self._entries.items()
        }


def load_alias_file(path: Path) -> AliasTable:
    """Load one alias file; a missing file yields an empty table.

    Raises:
        ConfigError: If the file is not valid YAML, does not follow the
            alias schema, or names an unknown package source.
    """
    if not path.exists():
        logger.debug("alias_file_missing", path=str(path))
        return AliasTable()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse package aliases in {path}: {e}", file=path) from e

    try:
        record = _AliasFileRecord.model_validate(data or {})
    except ValidationError as e:
        first_error = e.errors()[0]
        loc = ".".join(str(x) for x in first_error["loc"])
        raise ConfigError(
            f"Failed to parse package aliases in {path}: {loc}: {first_error['msg']}",
            file=path,
        ) from e

    entries: dict[str, dict[PackageSource, str]] = {}
    for package, names in record.root.items():
        resolved: dict[PackageSource, str] = {}
        for source_name, alias in names.items():
            try:
                source = PackageSource.parse(source_name)
            except ConfigError as e:
                raise ConfigError(
                    f"Failed to parse package aliases in {path}: {package}: {e.message}",
                    file=path,
                ) from e
            resolved[source] = alias
        entries[package] = resolved
    logger.debug("alias_file_loaded", path=str(path), packages=len(entries))
    return AliasTable(entries)


def load_aliases(global_path: Path | None, config_dir: Path) -> AliasTable:
    """Load and merge the global table and the local table of ``config_dir``.

    Args:
        global_path: Global alias file, or None to skip it.
        config_dir: Directory of the root provisioning file.

    Returns:
        The merged table.
    """
    global_table = load_alias_file(global_path) if global_path else AliasTable()
    local_table = load_alias_file(config_dir / ALIASES_FILE_NAME)
    return global_table.merge(local_table)
