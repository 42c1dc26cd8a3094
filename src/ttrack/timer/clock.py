"""Clock readings and elapsed-time formatting."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Protocol

DIRECTIVE = re.compile(r"%(.)", re.DOTALL)


@dataclass(frozen=True, slots=True)
class ClockReading:
    """A single wall-clock sample; every field derived from it agrees."""

    epoch_seconds: int

    def format(self, pattern: str) -> str:
        return time.strftime(pattern, time.localtime(self.epoch_seconds))


class Clock(Protocol):
    def now(self) -> ClockReading:
        ...


class SystemClock:
    """Local wall clock backed by :func:`time.time`."""

    def now(self) -> ClockReading:
        return ClockReading(epoch_seconds=int(time.time()))


class DurationCodec:
    """Format and parse zero-based elapsed times.

    ``%H`` is the total number of hours and is not wrapped at 24. ``%M`` and
    ``%S`` are minutes and seconds within the hour. Any other directive is
    delegated to :func:`time.strftime` over ``gmtime(seconds)`` when formatting
    and skipped when parsing.
    """

    def format(self, seconds: int, pattern: str) -> str:
        seconds = max(0, int(seconds))

        def substitute(match: re.Match[str]) -> str:
            code = match.group(1)
            if code == "H":
                return f"{seconds // 3600:02d}"
            if code == "M":
                return f"{seconds // 60 % 60:02d}"
            if code == "S":
                return f"{seconds % 60:02d}"
            if code == "%":
                return "%"
            return time.strftime(match.group(0), time.gmtime(seconds))

        return DIRECTIVE.sub(substitute, pattern)

    def parse(self, text: str, pattern: str) -> tuple[int, int, int]:
        """Return ``(hours, minutes, seconds)`` read from ``text``.

        Raises ``ValueError`` when ``text`` does not fit ``pattern``.
        """

        match = self._compile(pattern).fullmatch(text.strip())
        if match is None:
            raise ValueError(f"{text!r} does not match duration pattern {pattern!r}")
        groups = match.groupdict()
        return tuple(int(groups.get(code) or 0) for code in ("H", "M", "S"))  # type: ignore[return-value]

    @staticmethod
    def _compile(pattern: str) -> re.Pattern[str]:
        pieces: list[str] = []
        seen: set[str] = set()
        position = 0
        for match in DIRECTIVE.finditer(pattern):
            pieces.append(re.escape(pattern[position : match.start()]))
            code = match.group(1)
            if code in {"H", "M", "S"}:
                pieces.append(f"(?P={code})" if code in seen else rf"(?P<{code}>\d+)")
                seen.add(code)
            elif code == "%":
                pieces.append("%")
            else:
                pieces.append(".+?")
            position = match.end()
        pieces.append(re.escape(pattern[position:]))
        return re.compile("".join(pieces))

    def to_seconds(self, text: str, pattern: str) -> int:
        hours, minutes, seconds = self.parse(text, pattern)
        return hours * 3600 + minutes * 60 + seconds


__all__ = ["Clock", "ClockReading", "DurationCodec", "SystemClock"]
