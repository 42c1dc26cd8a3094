"""Token models for parsed entry templates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class Literal:
    """Text copied verbatim into rendered output."""

    text: str


@dataclass(frozen=True, slots=True)
class Placeholder:
    """A ``%{name}`` slot substituted at render time."""

    name: str

    @property
    def source(self) -> str:
        return "%{" + self.name + "}"


Token = Union[Literal, Placeholder]


__all__ = ["Literal", "Placeholder", "Token"]
