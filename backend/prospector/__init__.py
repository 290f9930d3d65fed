"""Prospector - company enrichment and ICP scoring service."""

__version__ = "1.0.0"
