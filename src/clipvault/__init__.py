"""Kindle clippings ingestion, deduplication, and highlight search."""

__version__ = "0.1.0"
