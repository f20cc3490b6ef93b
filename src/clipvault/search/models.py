"""Row types returned by the highlight store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import sqlite3

from clipvault.search.schema import SQLITE_DATETIME_FORMAT


class WriteOutcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class HighlightWrite:
    """Result of one conditional highlight insert."""

    outcome: WriteOutcome
    highlight_id: int | None = None
    error: str | None = None


HIGHLIGHT_SELECT = """
    SELECT
        h.id AS id,
        h.book_id AS book_id,
        h.content AS content,
        h.location AS location,
        h.date_highlighted AS date_highlighted,
        h.date_imported AS date_imported,
        h.is_favorite AS is_favorite,
        h.content_hash AS content_hash,
        b.title AS book_title,
        b.author AS book_author
    FROM highlights h
    JOIN books b ON b.id = h.book_id
"""


def format_sqlite_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime(SQLITE_DATETIME_FORMAT)


def parse_sqlite_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat(sep=" ") if value is not None else None


@dataclass(slots=True)
class BookRecord:
    id: int
    title: str
    author: str | None
    kindle_title: str
    created_at: datetime | None
    highlight_count: int = 0
    cover_path: str | None = None

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "kindle_title": self.kindle_title,
            "created_at": _isoformat(self.created_at),
            "highlight_count": self.highlight_count,
            "cover_path": self.cover_path,
        }


@dataclass(slots=True)
class HighlightRecord:
    id: int
    book_id: int
    content: str
    location: str | None
    date_highlighted: datetime | None
    date_imported: datetime | None
    is_favorite: bool
    content_hash: str
    book_title: str | None = None
    book_author: str | None = None

    def to_dict(self) -> dict[str, str | int | bool | None]:
        return {
            "id": self.id,
            "book_id": self.book_id,
            "book_title": self.book_title,
            "book_author": self.book_author,
            "content": self.content,
            "location": self.location,
            "date_highlighted": _isoformat(self.date_highlighted),
            "date_imported": _isoformat(self.date_imported),
            "is_favorite": self.is_favorite,
            "content_hash": self.content_hash,
        }


@dataclass(slots=True)
class TagRecord:
    id: int
    name: str
    color: str

    def to_dict(self) -> dict[str, str | int]:
        return {"id": self.id, "name": self.name, "color": self.color}


def highlight_from_row(row: sqlite3.Row) -> HighlightRecord:
    return HighlightRecord(
        id=int(row["id"]),
        book_id=int(row["book_id"]),
        content=row["content"],
        location=row["location"],
        date_highlighted=parse_sqlite_datetime(row["date_highlighted"]),
        date_imported=parse_sqlite_datetime(row["date_imported"]),
        is_favorite=bool(row["is_favorite"]),
        content_hash=row["content_hash"],
        book_title=row["book_title"],
        book_author=row["book_author"],
    )


def book_from_row(row: sqlite3.Row) -> BookRecord:
    keys = row.keys()
    return BookRecord(
        id=int(row["id"]),
        title=row["title"],
        author=row["author"],
        kindle_title=row["kindle_title"],
        created_at=parse_sqlite_datetime(row["created_at"]),
        highlight_count=int(row["highlight_count"]) if "highlight_count" in keys else 0,
        cover_path=row["cover_path"],
    )


def tag_from_row(row: sqlite3.Row) -> TagRecord:
    return TagRecord(id=int(row["id"]), name=row["name"], color=row["color"])
