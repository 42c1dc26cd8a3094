"""Display ports for the live entry line."""

from __future__ import annotations

import sys
from typing import Protocol, TextIO

ERASE_LINE = "\r\x1b[2K"


class Display(Protocol):
    """Shows one line of text and replaces it on every update."""

    def replace_line(self, text: str) -> None:
        ...

    def finish(self) -> None:
        ...


class TerminalDisplay:
    """Redraws the current terminal line in place."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout
        self._dirty = False

    def replace_line(self, text: str) -> None:
        self._stream.write(ERASE_LINE + text)
        self._stream.flush()
        self._dirty = True

    def finish(self) -> None:
        if self._dirty:
            self._stream.write("\n")
            self._stream.flush()
            self._dirty = False


class NullDisplay:
    """Discards output; used for non-interactive runs."""

    def replace_line(self, text: str) -> None:
        return None

    def finish(self) -> None:
        return None


__all__ = ["Display", "NullDisplay", "TerminalDisplay"]
