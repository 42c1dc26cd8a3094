"""Template rendering and inversion exports."""

from .engine import adjacent_placeholders, extract, invert, parse, render
from .models import Literal, Placeholder, Token

__all__ = [
    "Literal",
    "Placeholder",
    "Token",
    "adjacent_placeholders",
    "extract",
    "invert",
    "parse",
    "render",
]
