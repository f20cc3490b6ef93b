"""FTS5 query builder and combined highlight search."""

from __future__ import annotations

from datetime import datetime
import logging
import sqlite3

from clipvault.search.models import HIGHLIGHT_SELECT, HighlightRecord, highlight_from_row


logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
EMPTY_MATCH_SENTINEL = '""'
LIKE_ESCAPE_CHAR = "\\"

_FTS_SPECIAL_CHARS = '"*^():+-'
_FTS_STRIP_TABLE = str.maketrans("", "", _FTS_SPECIAL_CHARS)


def sanitize_term(word: str) -> str:
    """Delete characters with meaning in FTS5 query syntax."""

    return word.translate(_FTS_STRIP_TABLE)


def build_match_expression(query: str) -> str:
    """Build an all-terms prefix MATCH expression, e.g. ``"gre* gat*"``.

    Returns the empty-phrase sentinel when nothing survives sanitizing, so
    the expression never matches everything.
    """

    terms = [term for term in (sanitize_term(word) for word in query.split()) if term]
    if not terms:
        return EMPTY_MATCH_SENTINEL
    return " ".join(f"{term}*" for term in terms)


def escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace("%", LIKE_ESCAPE_CHAR + "%")
        .replace("_", LIKE_ESCAPE_CHAR + "_")
    )


def build_like_pattern(query: str) -> str:
    return f"%{escape_like(query)}%"


def _content_matches(connection: sqlite3.Connection, expression: str) -> list[sqlite3.Row]:
    if expression == EMPTY_MATCH_SENTINEL:
        return []
    try:
        return connection.execute(
            f"""
            {HIGHLIGHT_SELECT}
            WHERE h.id IN (
                SELECT rowid FROM highlights_fts WHERE highlights_fts MATCH ?
            )
            """,
            (expression,),
        ).fetchall()
    except sqlite3.Error as exc:
        logger.debug("FTS expression %r rejected: %s", expression, exc)
        return []


def _metadata_matches(connection: sqlite3.Connection, pattern: str) -> list[sqlite3.Row]:
    try:
        return connection.execute(
            f"""
            {HIGHLIGHT_SELECT}
            WHERE b.title LIKE ? ESCAPE '{LIKE_ESCAPE_CHAR}'
               OR b.author LIKE ? ESCAPE '{LIKE_ESCAPE_CHAR}'
            """,
            (pattern, pattern),
        ).fetchall()
    except sqlite3.Error as exc:
        logger.debug("Metadata pattern %r rejected: %s", pattern, exc)
        return []


def _recency_key(record: HighlightRecord) -> tuple[bool, datetime, int]:
    return (
        record.date_highlighted is not None,
        record.date_highlighted or datetime.min,
        record.id,
    )


def search_highlights(
    connection: sqlite3.Connection,
    *,
    query: str,
    limit: int | None = None,
) -> list[HighlightRecord]:
    """Search highlight text (FTS prefix terms) and book title/author (LIKE).

    Results are deduplicated by highlight id and ordered newest highlight
    first; undated highlights sort last. A non-positive ``limit`` or a query
    that cannot be encoded as UTF-8 yields no results.
    """

    if len(query) < MIN_QUERY_LENGTH:
        return []
    if limit is not None and limit < 1:
        return []
    try:
        query.encode("utf-8")
    except UnicodeEncodeError:
        logger.debug("Ignoring query that is not valid UTF-8: %r", query)
        return []

    merged: dict[int, HighlightRecord] = {}
    rows = _content_matches(connection, build_match_expression(query))
    rows += _metadata_matches(connection, build_like_pattern(query))
    for row in rows:
        record = highlight_from_row(row)
        merged.setdefault(record.id, record)

    results = sorted(merged.values(), key=_recency_key, reverse=True)
    if limit is not None:
        results = results[:limit]
    return results
