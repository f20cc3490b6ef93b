"""Transactional SQLite store for books, highlights, and tags."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from pathlib import Path
import sqlite3
import threading

from clipvault.search.models import (
    HIGHLIGHT_SELECT,
    BookRecord,
    HighlightRecord,
    HighlightWrite,
    TagRecord,
    WriteOutcome,
    book_from_row,
    format_sqlite_datetime,
    highlight_from_row,
    tag_from_row,
)
from clipvault.search.query import search_highlights
from clipvault.search.schema import (
    DEFAULT_TAG_COLOR,
    apply_runtime_pragmas,
    ensure_schema,
    optimize_fts,
    rebuild_fts,
)


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StoreConnectionError(Exception):
    """Raised when the database cannot be opened or initialized."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


@dataclass(slots=True)
class StorageError(Exception):
    """Raised when a store write fails for reasons other than deduplication."""

    operation: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (operation={self.operation})"


_BOOK_SELECT = """
    SELECT
        b.id AS id,
        b.title AS title,
        b.author AS author,
        b.kindle_title AS kindle_title,
        b.created_at AS created_at,
        b.cover_path AS cover_path,
        COUNT(h.id) AS highlight_count
    FROM books b
    LEFT JOIN highlights h ON h.book_id = b.id
"""


class HighlightRepository:
    """One-connection store; writes are serialized and run in transactions.

    The FTS index is maintained by triggers inside each write transaction,
    so readers never observe a highlight without its index entry.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._write_lock = threading.RLock()
        self._books_cache: list[BookRecord] | None = None
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            # Debounced searches run on a worker thread against this connection.
            self._connection = sqlite3.connect(str(self._db_path), check_same_thread=False)
        except (OSError, sqlite3.Error) as exc:
            raise StoreConnectionError(self._db_path, f"Failed to open database: {exc}") from exc

        self._connection.row_factory = sqlite3.Row
        try:
            apply_runtime_pragmas(self._connection)
            ensure_schema(self._connection)
        except sqlite3.Error as exc:
            self._connection.close()
            raise StoreConnectionError(self._db_path, f"Failed to initialize schema: {exc}") from exc

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "HighlightRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Books

    def find_or_create_book(self, *, title: str, author: str | None, kindle_title: str) -> int:
        """Return the id of the book keyed by ``kindle_title``, inserting on miss.

        A concurrent creator losing the race on the UNIQUE constraint falls
        through to the lookup and gets the winner's row.
        """

        try:
            with self._write_lock, self._connection:
                self._connection.execute(
                    """
                    INSERT INTO books(title, author, kindle_title)
                    VALUES(?, ?, ?)
                    ON CONFLICT(kindle_title) DO NOTHING
                    """,
                    (title, author, kindle_title),
                )
                row = self._connection.execute(
                    "SELECT id FROM books WHERE kindle_title = ?",
                    (kindle_title,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError("find_or_create_book", str(exc)) from exc

        if row is None:
            raise StorageError("find_or_create_book", f"Book row missing after insert: {kindle_title}")
        return int(row["id"])

    def get_book(self, book_id: int) -> BookRecord | None:
        row = self._connection.execute(
            f"{_BOOK_SELECT} WHERE b.id = ? GROUP BY b.id",
            (book_id,),
        ).fetchone()
        if row is None:
            return None
        return book_from_row(row)

    def list_books(self) -> list[BookRecord]:
        rows = self._connection.execute(
            f"{_BOOK_SELECT} GROUP BY b.id ORDER BY b.created_at DESC, b.id DESC"
        ).fetchall()
        return [book_from_row(row) for row in rows]

    @property
    def books(self) -> list[BookRecord]:
        """Cached book listing; call :meth:`refresh_books` after writes."""

        if self._books_cache is None:
            self._books_cache = self.list_books()
        return list(self._books_cache)

    def refresh_books(self) -> list[BookRecord]:
        self._books_cache = self.list_books()
        return list(self._books_cache)

    def update_cover_path(self, book_id: int, cover_path: str | None) -> bool:
        try:
            with self._write_lock, self._connection:
                cursor = self._connection.execute(
                    "UPDATE books SET cover_path = ? WHERE id = ?",
                    (cover_path, book_id),
                )
        except sqlite3.Error as exc:
            raise StorageError("update_cover_path", str(exc)) from exc
        return cursor.rowcount > 0

    # Highlights

    def insert_highlight(
        self,
        *,
        book_id: int,
        content: str,
        location: str | None,
        date_highlighted: datetime | None,
        content_hash: str,
    ) -> HighlightWrite:
        """Insert unless ``content_hash`` already exists anywhere in the store."""

        try:
            with self._write_lock, self._connection:
                cursor = self._connection.execute(
                    """
                    INSERT INTO highlights(book_id, content, location, date_highlighted, content_hash)
                    VALUES(?, ?, ?, ?, ?)
                    ON CONFLICT(content_hash) DO NOTHING
                    """,
                    (book_id, content, location, format_sqlite_datetime(date_highlighted), content_hash),
                )
        except sqlite3.Error as exc:
            logger.warning("Highlight insert failed for %s: %s", content_hash, exc)
            return HighlightWrite(outcome=WriteOutcome.FAILED, error=str(exc))

        if cursor.rowcount == 0:
            return HighlightWrite(outcome=WriteOutcome.DUPLICATE)
        return HighlightWrite(outcome=WriteOutcome.CREATED, highlight_id=int(cursor.lastrowid))

    def insert_highlight_if_absent(
        self,
        *,
        book_id: int,
        content: str,
        location: str | None,
        date_highlighted: datetime | None,
        content_hash: str,
    ) -> int | None:
        """Return the new highlight id, or ``None`` for a duplicate."""

        result = self.insert_highlight(
            book_id=book_id,
            content=content,
            location=location,
            date_highlighted=date_highlighted,
            content_hash=content_hash,
        )
        if result.outcome is WriteOutcome.FAILED:
            raise StorageError("insert_highlight", result.error or "unknown error")
        return result.highlight_id

    def get_highlight(self, highlight_id: int) -> HighlightRecord | None:
        row = self._connection.execute(
            f"{HIGHLIGHT_SELECT} WHERE h.id = ?",
            (highlight_id,),
        ).fetchone()
        if row is None:
            return None
        return highlight_from_row(row)

    def get_highlights_for_book(self, book_id: int) -> list[HighlightRecord]:
        rows = self._connection.execute(
            f"{HIGHLIGHT_SELECT} WHERE h.book_id = ? ORDER BY h.date_highlighted DESC, h.id DESC",
            (book_id,),
        ).fetchall()
        return [highlight_from_row(row) for row in rows]

    def get_all_highlights(self) -> list[HighlightRecord]:
        rows = self._connection.execute(
            f"{HIGHLIGHT_SELECT} ORDER BY h.date_highlighted DESC, h.id DESC"
        ).fetchall()
        return [highlight_from_row(row) for row in rows]

    def get_favorite_highlights(self) -> list[HighlightRecord]:
        rows = self._connection.execute(
            f"{HIGHLIGHT_SELECT} WHERE h.is_favorite = 1 ORDER BY h.date_highlighted DESC, h.id DESC"
        ).fetchall()
        return [highlight_from_row(row) for row in rows]

    def toggle_favorite(self, highlight_id: int) -> bool | None:
        """Flip the favorite flag; returns the new value or ``None`` if missing."""

        try:
            with self._write_lock, self._connection:
                row = self._connection.execute(
                    "SELECT is_favorite FROM highlights WHERE id = ?",
                    (highlight_id,),
                ).fetchone()
                if row is None:
                    return None
                new_value = not bool(row["is_favorite"])
                self._connection.execute(
                    "UPDATE highlights SET is_favorite = ? WHERE id = ?",
                    (int(new_value), highlight_id),
                )
        except sqlite3.Error as exc:
            raise StorageError("toggle_favorite", str(exc)) from exc
        return new_value

    def delete_highlight(self, highlight_id: int) -> bool:
        try:
            with self._write_lock, self._connection:
                cursor = self._connection.execute("DELETE FROM highlights WHERE id = ?", (highlight_id,))
        except sqlite3.Error as exc:
            raise StorageError("delete_highlight", str(exc)) from exc
        return cursor.rowcount > 0

    # Tags

    def list_tags(self) -> list[TagRecord]:
        rows = self._connection.execute("SELECT id, name, color FROM tags ORDER BY name ASC").fetchall()
        return [tag_from_row(row) for row in rows]

    def create_tag(self, name: str, color: str = DEFAULT_TAG_COLOR) -> int:
        clean_name = name.strip()
        if not clean_name:
            raise ValueError("Tag name cannot be empty")
        try:
            with self._write_lock, self._connection:
                cursor = self._connection.execute(
                    "INSERT INTO tags(name, color) VALUES(?, ?)",
                    (clean_name, color),
                )
        except sqlite3.Error as exc:
            raise StorageError("create_tag", str(exc)) from exc
        return int(cursor.lastrowid)

    def update_tag(self, tag_id: int, *, name: str, color: str) -> bool:
        clean_name = name.strip()
        if not clean_name:
            raise ValueError("Tag name cannot be empty")
        try:
            with self._write_lock, self._connection:
                cursor = self._connection.execute(
                    "UPDATE tags SET name = ?, color = ? WHERE id = ?",
                    (clean_name, color, tag_id),
                )
        except sqlite3.Error as exc:
            raise StorageError("update_tag", str(exc)) from exc
        return cursor.rowcount > 0

    def delete_tag(self, tag_id: int) -> bool:
        try:
            with self._write_lock, self._connection:
                cursor = self._connection.execute("DELETE FROM tags WHERE id = ?", (tag_id,))
        except sqlite3.Error as exc:
            raise StorageError("delete_tag", str(exc)) from exc
        return cursor.rowcount > 0

    def add_tag_to_highlight(self, tag_id: int, highlight_id: int) -> None:
        try:
            with self._write_lock, self._connection:
                self._connection.execute(
                    "INSERT OR IGNORE INTO highlight_tags(highlight_id, tag_id) VALUES(?, ?)",
                    (highlight_id, tag_id),
                )
        except sqlite3.Error as exc:
            raise StorageError("add_tag_to_highlight", str(exc)) from exc

    def remove_tag_from_highlight(self, tag_id: int, highlight_id: int) -> None:
        try:
            with self._write_lock, self._connection:
                self._connection.execute(
                    "DELETE FROM highlight_tags WHERE highlight_id = ? AND tag_id = ?",
                    (highlight_id, tag_id),
                )
        except sqlite3.Error as exc:
            raise StorageError("remove_tag_from_highlight", str(exc)) from exc

    def get_tags_for_highlight(self, highlight_id: int) -> list[TagRecord]:
        rows = self._connection.execute(
            """
            SELECT t.id AS id, t.name AS name, t.color AS color
            FROM tags t
            JOIN highlight_tags ht ON ht.tag_id = t.id
            WHERE ht.highlight_id = ?
            ORDER BY t.name ASC
            """,
            (highlight_id,),
        ).fetchall()
        return [tag_from_row(row) for row in rows]

    def get_highlights_for_tag(self, tag_id: int) -> list[HighlightRecord]:
        rows = self._connection.execute(
            f"""
            {HIGHLIGHT_SELECT}
            JOIN highlight_tags ht ON ht.highlight_id = h.id
            WHERE ht.tag_id = ?
            ORDER BY h.date_highlighted DESC, h.id DESC
            """,
            (tag_id,),
        ).fetchall()
        return [highlight_from_row(row) for row in rows]

    # Search and maintenance

    def search(self, query: str, *, limit: int | None = None) -> list[HighlightRecord]:
        return search_highlights(self._connection, query=query, limit=limit)

    def run_maintenance(self, command: str) -> None:
        if command == "optimize":
            with self._write_lock, self._connection:
                optimize_fts(self._connection)
            return
        if command == "rebuild":
            with self._write_lock, self._connection:
                rebuild_fts(self._connection)
            return
        raise ValueError(f"Unsupported maintenance command: {command}")
