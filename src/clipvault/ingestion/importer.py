"""Sequential clippings import: book resolution plus insert-or-skip."""

from __future__ import annotations

import logging
from pathlib import Path

from clipvault.ingestion.models import ImportResult, ParsedEntry
from clipvault.ingestion.parser import parse_clippings
from clipvault.ingestion.reader import read_clippings_file
from clipvault.search.models import WriteOutcome
from clipvault.search.repository import HighlightRepository, StorageError


logger = logging.getLogger(__name__)


class ClippingsImporter:
    """Drive the parser over a file and fold per-entry outcomes into counts.

    Entries are processed in file order on the calling thread. Each
    committed highlight is durable immediately; a failing entry is counted
    as skipped and never aborts the batch.
    """

    def __init__(self, repository: HighlightRepository) -> None:
        self._repository = repository

    @classmethod
    def from_db_path(cls, db_path: str | Path) -> "ClippingsImporter":
        return cls(HighlightRepository(db_path))

    @property
    def repository(self) -> HighlightRepository:
        return self._repository

    def close(self) -> None:
        self._repository.close()

    def __enter__(self) -> "ClippingsImporter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def import_entry(self, entry: ParsedEntry) -> WriteOutcome:
        try:
            book_id = self._repository.find_or_create_book(
                title=entry.book_title,
                author=entry.author,
                kindle_title=entry.kindle_title,
            )
        except StorageError as exc:
            logger.warning("Could not resolve book %r: %s", entry.kindle_title, exc)
            return WriteOutcome.FAILED

        write = self._repository.insert_highlight(
            book_id=book_id,
            content=entry.content,
            location=entry.location,
            date_highlighted=entry.date_highlighted,
            content_hash=entry.content_hash,
        )
        return write.outcome

    def import_all(self, file_content: str) -> ImportResult:
        entries = parse_clippings(file_content)
        result = ImportResult(total=len(entries))

        for entry in entries:
            result.record(self.import_entry(entry))

        self._repository.refresh_books()
        logger.info(
            "Imported %d of %d highlights (%d skipped, %d failed)",
            result.imported,
            result.total,
            result.skipped,
            result.failed,
        )
        return result

    def import_file(self, path: str | Path) -> ImportResult:
        return self.import_all(read_clippings_file(path))
