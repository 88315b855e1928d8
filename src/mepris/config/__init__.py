"""Loading and resolution of provisioning files."""

from __future__ import annotations

from mepris.config.aliases import AliasTable, load_alias_file, load_aliases
from mepris.config.models import Defaults, ResolvedConfig, Script, Step
from mepris.config.resolver import (
    ConfigResolver,
    check_unique_ids,
    load_config_file,
    resolve_config,
)

__all__ = [
    "AliasTable",
    "ConfigResolver",
    "Defaults",
    "ResolvedConfig",
    "Script",
    "Step",
    "check_unique_ids",
    "load_alias_file",
    "load_aliases",
    "resolve_config",
    "load_config_file",
]
