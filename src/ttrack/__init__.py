"""Plain-text time tracking with live entries and recursive summaries."""

__version__ = "0.1.0"

__all__ = ["__version__"]
