"""Console output."""

from .report import Reporter

__all__ = ["Reporter"]
