"""Atomic file writes.

The target file is either fully replaced or left untouched: content goes to
a temporary file in the same directory which is then renamed over the
target.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from atomicwrites import atomic_write  # type: ignore[import-untyped]

__all__ = [
    "atomic_write_json",
    "atomic_write_text",
]


def atomic_write_text(
    path: Path | str,
    content: str,
    *,
    encoding: str = "utf-8",
    mkdir: bool = True,
) -> None:
    """Write text to ``path`` atomically.

    Args:
        path: Destination file path.
        content: Text content to write.
        encoding: Character encoding to use.
        mkdir: Create missing parent directories.

    Raises:
        OSError: If the write or rename fails.
    """
    file_path = Path(path)
    if mkdir:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    with atomic_write(str(file_path), mode="w", encoding=encoding, overwrite=True) as f:
        f.write(content)


def atomic_write_json(path: Path | str, data: Any, *, mkdir: bool = True) -> None:
    """Serialize ``data`` as indented JSON and write it atomically.

    Raises:
        OSError: If the write or rename fails.
        TypeError: If ``data`` is not JSON-serializable.
    """
    content = json.dumps(data, indent=2, ensure_ascii=False)
    atomic_write_text(path, content + "\n", mkdir=mkdir)
