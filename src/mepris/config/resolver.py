"""Resolution of a root provisioning file into one ordered step sequence.

Includes are expanded depth-first in declared order; the steps of an
included file precede the steps of the file including it. Each file's
``defaults`` are merged over the defaults inherited from the including file
and passed down by value, so sibling includes never see each other's
overrides.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mepris.config.models import Defaults, ResolvedConfig, Step
from mepris.config.schema import ConfigFileRecord, StepRecord
from mepris.exceptions import ConfigError, DuplicateStepError, IncludeCycleError
from mepris.logging import get_logger

__all__ = [
    "ConfigResolver",
    "check_unique_ids",
    "display_path",
    "load_config_file",
    "parse_yaml",
    "resolve_config",
    "validate_schema",
]

logger = get_logger(__name__)

ConfigLoader = Callable[[Path], ConfigFileRecord]


def parse_yaml(content: str, path: Path) -> dict[str, Any]:
    """Parse YAML text into a mapping.

    An empty document is treated as an empty mapping.

    Args:
        content: YAML text.
        path: File the text was read from, for error messages.

    Returns:
        The parsed mapping.

    Raises:
        ConfigError: On syntax errors (with the line number) or when the
            document is not a mapping.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        location = ""
        mark = getattr(e, "problem_mark", None)
        context = getattr(e, "context_mark", None)
        if context is not None and mark is not None and context.line != mark.line:
            # Unclosed constructs are detected later than where they start.
            location = f" at line {context.line + 1} (detected at line {mark.line + 1})"
        elif mark is not None:
            location = f" at line {mark.line + 1}"
        raise ConfigError(f"YAML syntax error in '{path}'{location}: {e}", file=path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"'{path}' must contain a mapping, got {type(data).__name__}", file=path
        )
    return data


def validate_schema(data: dict[str, Any], path: Path) -> ConfigFileRecord:
    """Validate a parsed file against :class:`ConfigFileRecord`.

    Raises:
        ConfigError: Listing every schema violation with its location.
    """
    try:
        return ConfigFileRecord(**data)
    except ValidationError as e:
        details = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            details.append(f"{loc}: {error['msg']}")
        raise ConfigError(
            f"Invalid configuration in '{path}': {'; '.join(details)}", file=path
        ) from e


def load_config_file(path: Path) -> ConfigFileRecord:
    """Read and validate one provisioning file.

    Raises:
        ConfigError: If the file cannot be read or is invalid.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read file '{path}': {e.strerror or e}", file=path) from e
    return validate_schema(parse_yaml(content, path), path)


def display_path(path: Path, base_dir: Path | None) -> str:
    """Render ``path`` relative to ``base_dir`` for messages.

    Files outside ``base_dir`` get a ``..``-prefixed path.
    """
    if base_dir is None:
        return str(path)
    return os.path.relpath(path, base_dir)


def check_unique_ids(steps: Iterable[Step], base_dir: Path | None = None) -> None:
    """Verify that no two steps share an id.

    Expects each file's own steps to be unique already, so two occurrences
    from the same file mean that file was included more than once.

    Args:
        steps: Flattened step sequence.
        base_dir: Directory file names in the error are relative to.

    Raises:
        DuplicateStepError: Naming the id and the files of both occurrences.
    """
    seen: dict[str, Step] = {}
    for step in steps:
        first = seen.get(step.id)
        if first is not None:
            raise DuplicateStepError(
                step.id,
                display_path(first.source_file, base_dir),
                display_path(step.source_file, base_dir),
                repeated_include=first.source_file == step.source_file,
            )
        seen[step.id] = step


def _check_file_ids(record: ConfigFileRecord, path: Path, base_dir: Path | None) -> None:
    seen: set[str] = set()
    for step in record.steps:
        if step.id in seen:
            name = display_path(path, base_dir)
            raise DuplicateStepError(step.id, name, name)
        seen.add(step.id)


def _to_step(record: StepRecord, source_file: Path, defaults: Defaults) -> Step:
    return Step(
        id=record.id,
        source_file=source_file,
        os=record.condition(),
        tags=tuple(record.tags),
        env=tuple(record.env),
        when=record.when_script(),
        pre_script=record.pre_script_block(),
        package_source=record.package_source,
        packages=tuple(record.packages),
        script=record.script_block(),
        defaults=defaults,
    )


class ConfigResolver:
    """Expands includes and merges defaults starting from a root file.

    Example:
        ```python
        config = ConfigResolver().resolve(Path("machine.yaml"))
        for step in config.steps:
            print(step.id, step.source_file)
        ```
    """

    def __init__(self, loader: ConfigLoader = load_config_file) -> None:
        self._loader = loader
        self._expanding: list[Path] = []
        self._base_dir: Path | None = None
        self._files: list[Path] = []

    def resolve(self, root: Path | str) -> ResolvedConfig:
        """Resolve ``root`` and everything it includes.

        Args:
            root: Root provisioning file, relative to the working directory
                or absolute.

        Returns:
            The resolved configuration.

        Raises:
            IncludeCycleError: If a file includes itself, directly or not.
            DuplicateStepError: If two steps share an id.
            ConfigError: If any file cannot be read or is invalid.
        """
        root_path = Path(root).expanduser().resolve()
        self._expanding = []
        self._files = []
        self._base_dir = root_path.parent
        steps, defaults = self._expand(root_path, Defaults())
        check_unique_ids(steps, self._base_dir)
        logger.info(
            "config_resolved",
            root=str(root_path),
            files=len(self._files),
            steps=len(steps),
        )
        return ResolvedConfig(
            root_file=root_path,
            steps=tuple(steps),
            defaults=defaults,
            files=tuple(self._files),
        )

    def _expand(self, path: Path, inherited: Defaults) -> tuple[list[Step], Defaults]:
        if path in self._expanding:
            start = self._expanding.index(path)
            raise IncludeCycleError([*self._expanding[start:], path])

        self._expanding.append(path)
        try:
            record = self._loader(path)
            _check_file_ids(record, path, self._base_dir)
            self._files.append(path)
            defaults = inherited.merge(
                record.defaults.to_defaults() if record.defaults else None
            )
            steps: list[Step] = []
            for include in record.includes:
                child = (path.parent / Path(include).expanduser()).resolve()
                logger.debug("include_expanding", parent=str(path), include=str(child))
                child_steps, _ = self._expand(child, defaults)
                steps.extend(child_steps)
            steps.extend(_to_step(r, path, defaults) for r in record.steps)
        finally:
            self._expanding.pop()
        return steps, defaults


def resolve_config(root: Path | str) -> ResolvedConfig:
    """Resolve a root provisioning file with the default file loader."""
    return ConfigResolver().resolve(root)
