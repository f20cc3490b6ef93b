"""Debounced search and clippings-file watching."""

from clipvault.automation.debounce import DebouncedSearch, SearchDebouncer
from clipvault.automation.watcher import ClippingsFileWatcher, DebouncedClippingsHandler

__all__ = [
    "ClippingsFileWatcher",
    "DebouncedClippingsHandler",
    "DebouncedSearch",
    "SearchDebouncer",
]
