"""Tool settings for Mepris.

Settings control where Mepris keeps its own files, not what it provisions.
They are read, highest priority first, from:

1. Environment variables (``MEPRIS_*``)
2. The user settings file (``~/.config/mepris/config.yaml``)
3. Built-in defaults
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mepris.config.aliases import ALIASES_FILE_NAME
from mepris.exceptions import ConfigError
from mepris.logging import get_logger
from mepris.system.packages import PackageSource

__all__ = [
    "MeprisSettings",
    "get_user_config_dir",
    "get_user_data_dir",
    "load_settings",
]

logger = get_logger(__name__)


def get_user_config_dir() -> Path:
    """Return ``~/.config/mepris``."""
    return Path.home() / ".config" / "mepris"


def get_user_data_dir() -> Path:
    """Return ``~/.local/share/mepris``."""
    return Path.home() / ".local" / "share" / "mepris"


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Settings source that loads values from a YAML file."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_file: Path) -> None:
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._data: dict[str, Any] = {}
        if not yaml_file.exists():
            return
        try:
            with open(yaml_file, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_file}: {e}", file=yaml_file) from e
        if loaded is None:
            logger.warning("settings_file_empty", path=str(yaml_file))
        elif not isinstance(loaded, dict):
            raise ConfigError(
                f"Settings file {yaml_file} must contain a mapping", file=yaml_file
            )
        else:
            self._data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._data


class MeprisSettings(BaseSettings):
    """Locations and overrides used by the CLI.

    Attributes:
        state_path: Where the resume state of a failed run is stored.
        global_aliases_path: Global package alias table, merged under the
            ``pkg_aliases.yaml`` next to the provisioning file.
        fake_package_manager: Pretend this is the platform's default package
            source instead of detecting one. Intended for tests and demos.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEPRIS_",
        extra="ignore",
    )

    state_path: Path = Field(default_factory=lambda: get_user_data_dir() / "state.json")
    global_aliases_path: Path = Field(
        default_factory=lambda: get_user_config_dir() / ALIASES_FILE_NAME,
        validation_alias=AliasChoices(
            "global_aliases_path",
            "MEPRIS_GLOBAL_ALIASES_PATH",
            "GLOBAL_ALIASES_PATH",
        ),
    )
    fake_package_manager: PackageSource | None = None

    @field_validator("fake_package_manager", mode="before")
    @classmethod
    def parse_package_source(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value:
                return None
            return PackageSource.parse(value)
        return value

    @field_validator("state_path", "global_aliases_path", mode="after")
    @classmethod
    def expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment variables first, then the user settings file.

        Earlier sources win. ``init_settings`` stays first so tests can pass
        explicit values.
        """
        return (
            init_settings,
            env_settings,
            YamlSettingsSource(settings_cls, get_user_config_dir() / "config.yaml"),
        )


def load_settings(**overrides: Any) -> MeprisSettings:
    """Load settings from the environment and the user settings file.

    Args:
        **overrides: Explicit values taking precedence over every source.

    Returns:
        The loaded MeprisSettings.

    Raises:
        ConfigError: If a value fails validation.
    """
    try:
        return MeprisSettings(**overrides)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            f"Invalid setting {field}: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
