"""Data models for tracked files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..config import Options


@dataclass(slots=True)
class TrackedFile:
    path: Path
    options: Options = field(default_factory=Options)
    entries: list[str] = field(default_factory=list)
    extra_header: list[str] = field(default_factory=list)

    def append(self, entry: str) -> int:
        """Append an entry and return its index."""

        self.entries.append(entry)
        return len(self.entries) - 1


__all__ = ["TrackedFile"]
