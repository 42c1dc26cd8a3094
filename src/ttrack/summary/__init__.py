"""Summary mode exports."""

from .aggregator import SEPARATOR, FileTotal, SummaryAggregator

__all__ = ["FileTotal", "SEPARATOR", "SummaryAggregator"]
