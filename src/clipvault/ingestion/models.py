"""Canonical data structures shared by the clippings parser and importer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from clipvault.search.models import WriteOutcome


@dataclass(frozen=True, slots=True)
class ParsedEntry:
    """One highlight recovered from a clippings export."""

    book_title: str
    author: str | None
    kindle_title: str
    content: str
    location: str | None
    date_highlighted: datetime | None
    content_hash: str


@dataclass(slots=True)
class ImportResult:
    imported: int = 0
    skipped: int = 0
    total: int = 0
    failed: int = 0

    def record(self, outcome: WriteOutcome) -> None:
        if outcome is WriteOutcome.CREATED:
            self.imported += 1
            return
        self.skipped += 1
        if outcome is WriteOutcome.FAILED:
            self.failed += 1

    def to_dict(self) -> dict[str, int]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "failed": self.failed,
            "total": self.total,
        }
