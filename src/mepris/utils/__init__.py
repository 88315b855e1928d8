"""Shared helpers."""

from __future__ import annotations

from mepris.utils.atomic import atomic_write_json, atomic_write_text

__all__ = ["atomic_write_json", "atomic_write_text"]
