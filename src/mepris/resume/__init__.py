"""Persistence of failed runs for ``mepris resume``."""

from __future__ import annotations

from mepris.resume.data import STATE_VERSION, RunState
from mepris.resume.store import FileResumeStore, MemoryResumeStore, ResumeStore

__all__ = [
    "STATE_VERSION",
    "FileResumeStore",
    "MemoryResumeStore",
    "ResumeStore",
    "RunState",
]
