"""Line-oriented reader and writer for tracked files."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..config import OPTION_NAMES, TrackerSettings, get_settings, options_for, parse_option_line
from .models import TrackedFile

TRACKED_MARKER = "#tt"
ENTRIES_MARKER = "entries:"
BOM = "\ufeff"
_FIRST_LINE_LIMIT = 4096

logger = logging.getLogger(__name__)


class TrackedFileError(RuntimeError):
    """Raised when a tracked file cannot be created, read or written."""


def is_tracked_file(path: Path) -> bool:
    """Return True when ``path`` is a regular file whose first line carries the ``#tt`` marker.

    A leading UTF-8 byte order mark is ignored.
    """

    path = Path(path)
    try:
        if not path.is_file():
            return False
        with path.open("rb") as handle:
            first_line = handle.readline(_FIRST_LINE_LIMIT)
    except OSError:
        return False
    text = first_line.decode("utf-8", errors="replace").removeprefix(BOM)
    return TRACKED_MARKER in text


class FileStore:
    """Reads and writes tracked files, resolving their options on open."""

    def __init__(self, settings: TrackerSettings | None = None) -> None:
        self._settings = settings or get_settings()

    def read(self, path: Path) -> TrackedFile:
        """Open ``path`` for tracking, creating it and its parents when absent."""

        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
        except OSError as exc:
            raise TrackedFileError(f"Cannot create tracked file {path}: {exc}") from exc
        return self.load(path)

    def load(self, path: Path) -> TrackedFile:
        """Parse an existing tracked file without creating anything."""

        path = Path(path)
        try:
            with path.open(encoding="utf-8", newline="") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise TrackedFileError(f"Cannot read tracked file {path}: {exc}") from exc
        return self.parse(path, text)

    def parse(self, path: Path, text: str) -> TrackedFile:
        overrides: dict[str, str] = {}
        extra_header: list[str] = []
        entries: list[str] = []
        in_entries = False
        header: list[tuple[str, tuple[str, str] | None]] = []

        lines = text.removeprefix(BOM).split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        for index, raw in enumerate(lines):
            if in_entries:
                entries.append(raw)
                continue
            line = raw.removesuffix("\r")
            if line == ENTRIES_MARKER:
                in_entries = True
                continue
            if not line.strip() or (index == 0 and line == TRACKED_MARKER):
                continue
            header.append((line, parse_option_line(line)))

        # Only the last assignment of a recognized option is live; earlier ones stay as text.
        live = {
            parsed[0]: position
            for position, (_, parsed) in enumerate(header)
            if parsed is not None and parsed[0] in OPTION_NAMES
        }
        for position, (line, parsed) in enumerate(header):
            if parsed is not None and live.get(parsed[0]) == position:
                overrides[parsed[0]] = parsed[1]
            else:
                extra_header.append(line)

        try:
            options = options_for(path, overrides, self._settings)
        except ValidationError as exc:
            raise TrackedFileError(f"Invalid options in {path}: {exc}") from exc

        logger.debug(
            "Loaded tracked file",
            extra={"path": str(path), "entries": len(entries), "extra_header": len(extra_header)},
        )
        return TrackedFile(path=path, options=options, entries=entries, extra_header=extra_header)

    @staticmethod
    def serialize(tracked: TrackedFile) -> str:
        values = tracked.options.as_mapping()
        lines = [TRACKED_MARKER, ""]
        lines.extend(tracked.extra_header)
        lines.extend(f'{name}="{values[name]}"' for name in OPTION_NAMES)
        lines.extend(["", ENTRIES_MARKER])
        lines.extend(tracked.entries)
        return "\n".join(lines) + "\n"

    def write(self, tracked: TrackedFile) -> None:
        """Replace the file on disk with the serialized ``tracked`` content."""

        path = Path(tracked.path)
        payload = self.serialize(tracked)
        temp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_name = handle.name
                handle.write(payload)
            os.replace(temp_name, path)
        except OSError as exc:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            raise TrackedFileError(f"Cannot write tracked file {path}: {exc}") from exc
        logger.debug("Wrote tracked file", extra={"path": str(path), "entries": len(tracked.entries)})


__all__ = ["ENTRIES_MARKER", "TRACKED_MARKER", "FileStore", "TrackedFileError", "is_tracked_file"]
