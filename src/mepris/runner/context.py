"""Facts gathered once per run, before any step is processed."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from dotenv import dotenv_values

from mepris.logging import get_logger
from mepris.system.os_info import OsInfo, detect_os_info

__all__ = ["DOTENV_FILE_NAME", "RunContext", "load_dotenv_file"]

logger = get_logger(__name__)

DOTENV_FILE_NAME = ".env"


def load_dotenv_file(config_dir: Path) -> dict[str, str]:
    """Read ``.env`` from ``config_dir``; a missing file yields an empty dict.

    Keys declared without a value are ignored.
    """
    path = config_dir / DOTENV_FILE_NAME
    if not path.is_file():
        return {}
    values = {key: value for key, value in dotenv_values(path).items() if value is not None}
    logger.debug("dotenv_loaded", path=str(path), variables=len(values))
    return values


@dataclass(frozen=True, slots=True)
class RunContext:
    """Immutable per-run facts.

    Attributes:
        os_info: Identity of the running system.
        environment: Process environment with ``.env`` values applied over it.
            Passed to every child process.
    """

    os_info: OsInfo
    environment: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def platform(self) -> str:
        return self.os_info.platform

    def is_set(self, name: str) -> bool:
        return name in self.environment

    @classmethod
    def build(
        cls,
        config_dir: Path,
        *,
        os_info: OsInfo | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> RunContext:
        """Gather the context for a run of a file in ``config_dir``.

        Args:
            config_dir: Directory of the root provisioning file.
            os_info: OS identity; detected when None.
            environ: Base environment; os.environ when None.
        """
        environment = dict(os.environ if environ is None else environ)
        environment.update(load_dotenv_file(config_dir))
        return cls(
            os_info=os_info or detect_os_info(),
            environment=MappingProxyType(environment),
        )
