"""Recursive elapsed-time summaries over tracked files."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, TextIO

from pydantic import ValidationError

from ..config import Options, TrackerSettings, get_settings, options_for
from ..storage import FileStore, TrackedFile, TrackedFileError, is_tracked_file
from ..templating import adjacent_placeholders, extract
from ..timer.clock import DurationCodec

SEPARATOR = "-" * 40

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileTotal:
    path: Path
    seconds: int
    matched: int
    skipped: int


class SummaryAggregator:
    """Walks a path, totals every tracked file found and prints the results."""

    def __init__(
        self,
        *,
        store: FileStore | None = None,
        codec: DurationCodec | None = None,
        settings: TrackerSettings | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store or FileStore(self._settings)
        self._codec = codec or DurationCodec()
        self._stream = stream or sys.stdout
        self._warned_templates: set[str] = set()

    def _print(self, text: str) -> None:
        print(text, file=self._stream)

    @staticmethod
    def iter_candidates(path: Path) -> Iterator[Path]:
        """Yield ``path`` itself or every file below it, in sorted order."""

        path = Path(path)
        if path.is_dir():
            for candidate in sorted(path.rglob("*")):
                if candidate.is_file():
                    yield candidate
        elif path.exists():
            yield path
        else:
            logger.warning("Summary path does not exist", extra={"path": str(path)})

    def file_total(self, tracked: TrackedFile) -> FileTotal:
        """Sum the durations extracted from every entry of ``tracked``."""

        options = tracked.options
        template = options.format_entry
        adjacent = adjacent_placeholders(template)
        if adjacent and template not in self._warned_templates:
            self._warned_templates.add(template)
            logger.warning(
                "Entry template has adjacent placeholders; durations may be misread",
                extra={"path": str(tracked.path), "pairs": adjacent},
            )

        seconds = matched = skipped = 0
        for entry in tracked.entries:
            captured = extract(template, "duration", entry)
            if captured is None:
                skipped += 1
                continue
            try:
                seconds += self._codec.to_seconds(captured, options.format_duration)
            except ValueError:
                logger.debug(
                    "Unparsable duration in entry",
                    extra={"path": str(tracked.path), "captured": captured},
                )
                skipped += 1
                continue
            matched += 1
        return FileTotal(path=tracked.path, seconds=seconds, matched=matched, skipped=skipped)

    def collect(self, path: Path) -> list[tuple[TrackedFile, FileTotal]]:
        """Load and total every tracked file reachable from ``path``."""

        results: list[tuple[TrackedFile, FileTotal]] = []
        for candidate in self.iter_candidates(path):
            if not is_tracked_file(candidate):
                continue
            try:
                tracked = self._store.load(candidate)
            except TrackedFileError as exc:
                logger.warning("Skipping tracked file", extra={"path": str(candidate), "error": str(exc)})
                continue
            results.append((tracked, self.file_total(tracked)))
        return results

    def _total_options(self, path: Path, collected: list[tuple[TrackedFile, FileTotal]]) -> Options:
        """Options used for the grand total: the file's own when ``path`` is one tracked file."""

        if path.is_file() and len(collected) == 1:
            return collected[0][0].options
        try:
            return options_for(path if path.exists() else path.parent, settings=self._settings)
        except ValidationError as exc:
            logger.warning("Ignoring invalid directory defaults", extra={"path": str(path), "error": str(exc)})
            return Options()

    def run(self, path: Path, verbosity: int = 1) -> int:
        """Print totals for ``path`` and return the grand total in seconds."""

        if verbosity < 1:
            raise ValueError("verbosity must be >= 1")

        path = Path(path)
        grand_total = 0
        collected = self.collect(path)
        for tracked, total in collected:
            if verbosity >= 3:
                for entry in tracked.entries:
                    self._print(entry)
            if verbosity >= 2:
                self._print(str(tracked.path))
                self._print(self._codec.format(total.seconds, tracked.options.format_total))
                self._print(SEPARATOR)
            grand_total += total.seconds

        options = self._total_options(path, collected)
        self._print(self._codec.format(grand_total, options.format_total))
        logger.info("Summarized path", extra={"path": str(path), "total_seconds": grand_total})
        return grand_total


__all__ = ["FileTotal", "SEPARATOR", "SummaryAggregator"]
