"""Highlight storage and full-text search."""

from .models import BookRecord, HighlightRecord, TagRecord
from .repository import HighlightRepository, StorageError, StoreConnectionError

__all__ = [
    "BookRecord",
    "HighlightRecord",
    "HighlightRepository",
    "StorageError",
    "StoreConnectionError",
    "TagRecord",
]
