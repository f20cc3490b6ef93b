"""SQLite schema and pragmas for the highlight store."""

from __future__ import annotations

import sqlite3


PRAGMA_BUSY_TIMEOUT_MS = 5000
DEFAULT_TAG_COLOR = "#808080"
SQLITE_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def apply_runtime_pragmas(connection: sqlite3.Connection) -> None:
    """Apply runtime pragmas for a single-writer local store."""

    connection.execute("PRAGMA journal_mode=WAL;")
    connection.execute(f"PRAGMA busy_timeout={PRAGMA_BUSY_TIMEOUT_MS};")
    connection.execute("PRAGMA synchronous=NORMAL;")
    connection.execute("PRAGMA foreign_keys=ON;")


def _add_column_if_missing(
    connection: sqlite3.Connection,
    table: str,
    column: str,
    column_def: str,
) -> None:
    """Add a column to a table if it does not yet exist (idempotent)."""
    try:
        connection.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_def}")
    except sqlite3.OperationalError as exc:
        if "duplicate column name" not in str(exc).lower():
            raise


def ensure_schema(connection: sqlite3.Connection) -> None:
    """Create tables, the FTS index, and its sync triggers if missing."""

    connection.executescript(
        f"""
        CREATE TABLE IF NOT EXISTS books (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            author TEXT,
            kindle_title TEXT NOT NULL UNIQUE,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS highlights (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            book_id INTEGER NOT NULL REFERENCES books(id),
            content TEXT NOT NULL,
            location TEXT,
            date_highlighted TEXT,
            date_imported TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            is_favorite INTEGER NOT NULL DEFAULT 0 CHECK(is_favorite IN (0,1)),
            content_hash TEXT NOT NULL UNIQUE
        );

        CREATE TABLE IF NOT EXISTS tags (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            color TEXT NOT NULL DEFAULT '{DEFAULT_TAG_COLOR}'
        );

        CREATE TABLE IF NOT EXISTS highlight_tags (
            highlight_id INTEGER NOT NULL REFERENCES highlights(id) ON DELETE CASCADE,
            tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
            PRIMARY KEY (highlight_id, tag_id)
        );

        CREATE VIRTUAL TABLE IF NOT EXISTS highlights_fts USING fts5(
            content,
            content='highlights',
            content_rowid='id'
        );

        CREATE INDEX IF NOT EXISTS idx_highlights_book_id ON highlights(book_id);
        CREATE INDEX IF NOT EXISTS idx_highlights_is_favorite ON highlights(is_favorite);
        CREATE INDEX IF NOT EXISTS idx_highlight_tags_tag_id ON highlight_tags(tag_id);

        CREATE TRIGGER IF NOT EXISTS highlights_ai AFTER INSERT ON highlights BEGIN
            INSERT INTO highlights_fts(rowid, content) VALUES (new.id, new.content);
        END;

        CREATE TRIGGER IF NOT EXISTS highlights_ad AFTER DELETE ON highlights BEGIN
            INSERT INTO highlights_fts(highlights_fts, rowid, content)
            VALUES ('delete', old.id, old.content);
        END;

        CREATE TRIGGER IF NOT EXISTS highlights_au AFTER UPDATE ON highlights BEGIN
            INSERT INTO highlights_fts(highlights_fts, rowid, content)
            VALUES ('delete', old.id, old.content);
            INSERT INTO highlights_fts(rowid, content) VALUES (new.id, new.content);
        END;
        """
    )

    # Additive migrations: add columns to existing tables without breaking old DBs
    _add_column_if_missing(connection, "books", "cover_path", "TEXT")


def optimize_fts(connection: sqlite3.Connection) -> None:
    """Run FTS optimize maintenance command."""

    connection.execute("INSERT INTO highlights_fts(highlights_fts) VALUES ('optimize');")


def rebuild_fts(connection: sqlite3.Connection) -> None:
    """Run FTS rebuild maintenance command."""

    connection.execute("INSERT INTO highlights_fts(highlights_fts) VALUES ('rebuild');")
