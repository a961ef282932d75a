"""Stockroom: product catalog, stock receiving and stock movement screens."""

__version__ = "0.1.0"
