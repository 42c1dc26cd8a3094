"""Render ``%{name}`` templates and invert them into extraction patterns."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Mapping

from .models import Literal, Placeholder, Token

PLACEHOLDER = re.compile(r"%\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)\}")


@lru_cache(maxsize=64)
def parse(template: str) -> tuple[Token, ...]:
    """Segment ``template`` into literal and placeholder tokens.

    Adjacent literal text is merged, so two placeholders are textually
    adjacent exactly when they are neighbours in the returned sequence.
    """

    tokens: list[Token] = []
    position = 0
    for match in PLACEHOLDER.finditer(template):
        if match.start() > position:
            tokens.append(Literal(template[position : match.start()]))
        tokens.append(Placeholder(match.group("name")))
        position = match.end()
    if position < len(template):
        tokens.append(Literal(template[position:]))
    return tuple(tokens)


def render(template: str, variables: Mapping[str, str]) -> str:
    """Substitute every known placeholder once; unknown placeholders stay verbatim."""

    parts: list[str] = []
    for token in parse(template):
        if isinstance(token, Literal):
            parts.append(token.text)
        elif token.name in variables:
            parts.append(str(variables[token.name]))
        else:
            parts.append(token.source)
    return "".join(parts)


@lru_cache(maxsize=64)
def invert(template: str, target: str) -> re.Pattern[str]:
    """Build a pattern that captures the text rendered into ``%{target}``.

    The capture is a named group called ``target``. Repeated occurrences of the
    target must repeat the first capture. Every other placeholder matches any
    non-empty text. When two placeholders touch, the greedy wildcards make the
    boundary ambiguous and the capture may overrun into the neighbour; see
    :func:`adjacent_placeholders`.
    """

    pieces: list[str] = []
    captured = False
    for token in parse(template):
        if isinstance(token, Literal):
            pieces.append(re.escape(token.text))
        elif token.name == target:
            pieces.append(f"(?P={target})" if captured else f"(?P<{target}>.+)")
            captured = True
        else:
            pieces.append("(?:.+)")
    return re.compile("".join(pieces), re.DOTALL)


def extract(template: str, target: str, text: str) -> str | None:
    """Return the substring of ``text`` that filled ``%{target}``, if any."""

    pattern = invert(template, target)
    if target not in pattern.groupindex:
        return None
    match = pattern.fullmatch(text)
    if match is None:
        return None
    return match.group(target) or None


def adjacent_placeholders(template: str) -> list[tuple[str, str]]:
    """List placeholder pairs with no literal text between them."""

    tokens = parse(template)
    return [
        (left.name, right.name)
        for left, right in zip(tokens, tokens[1:])
        if isinstance(left, Placeholder) and isinstance(right, Placeholder)
    ]


__all__ = ["PLACEHOLDER", "adjacent_placeholders", "extract", "invert", "parse", "render"]
