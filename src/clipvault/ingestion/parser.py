"""Parser for the Kindle ``My Clippings.txt`` export format."""

from __future__ import annotations

from datetime import datetime
import re

from dateutil import parser as date_parser

from clipvault.ingestion.hashing import content_hash
from clipvault.ingestion.models import ParsedEntry


ENTRY_DELIMITER = "=========="

_HIGHLIGHT_MARKER = "Your Highlight on"
_NOTE_MARKER = "Your Note on"
_BOOKMARK_MARKER = "Your Bookmark on"

_LOCATION_RE = re.compile(r"Location\s+(\d+(?:-\d+)?)", re.IGNORECASE)
_PAGE_RE = re.compile(r"Page\s+(\d+)", re.IGNORECASE)
_ADDED_ON_RE = re.compile(r"Added on\s+(.+)$")

# Weekday prefix, then a four-digit year and a clock.
_KINDLE_DATE_SHAPE_RE = re.compile(r"^[A-Za-z]+,\s+.*\b\d{4}\b.*\b\d{1,2}:\d{2}\b")

# Stock parserinfo carries fixed English names, independent of the locale.
_PARSER_INFO = date_parser.parserinfo()
_DEFAULT_DATE = datetime(1970, 1, 1)


def parse_kindle_date(value: str) -> datetime | None:
    """Parse the text following ``Added on``; ``None`` if it is not a date.

    Accepts the layouts Kindle firmware writes, e.g.
    ``Monday, January 15, 2024 10:30:00 AM`` and
    ``Monday, 15 January 2024, 10:30``.
    """

    text = value.strip()
    if not _KINDLE_DATE_SHAPE_RE.match(text):
        return None
    try:
        return date_parser.parse(text, parserinfo=_PARSER_INFO, default=_DEFAULT_DATE, ignoretz=True)
    except (ValueError, OverflowError):
        return None


def _drop_unclosed_group(prefix: str) -> str:
    unclosed: list[int] = []
    for index, char in enumerate(prefix):
        if char == "(":
            unclosed.append(index)
        elif char == ")" and unclosed:
            unclosed.pop()
    if unclosed:
        return prefix[: unclosed[0]]
    return prefix


def split_title_author(line: str) -> tuple[str, str | None]:
    """Split a title line into ``(title, author)``.

    The author is the last parenthetical group, so
    ``"Book (Author (Editor))"`` yields ``("Book", "Editor")``. Lines that do
    not end with ``)`` or would leave an empty title or author are returned
    whole with no author.
    """

    if not line.endswith(")"):
        return line, None

    open_index = line.rfind("(")
    if open_index < 0:
        return line, None
    close_index = line.find(")", open_index + 1)
    if close_index < 0:
        return line, None

    author = line[open_index + 1 : close_index].strip()
    title = _drop_unclosed_group(line[:open_index]).strip()
    if not author or not title:
        return line, None
    return title, author


def extract_location(metadata_line: str) -> str | None:
    match = _LOCATION_RE.search(metadata_line)
    if match:
        return f"Location {match.group(1)}"
    match = _PAGE_RE.search(metadata_line)
    if match:
        return f"Page {match.group(1)}"
    return None


def extract_date(metadata_line: str) -> datetime | None:
    match = _ADDED_ON_RE.search(metadata_line)
    if match is None:
        return None
    return parse_kindle_date(match.group(1))


def parse_entry(raw_entry: str) -> ParsedEntry | None:
    """Parse one delimiter-separated entry; ``None`` for anything but a highlight."""

    # A byte-order mark can only precede the title line.
    lines = [line.strip() for line in raw_entry.strip().lstrip("\ufeff").splitlines()]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        return None

    title_line, metadata_line = lines[0], lines[1]
    if _NOTE_MARKER in metadata_line or _BOOKMARK_MARKER in metadata_line:
        return None
    if _HIGHLIGHT_MARKER not in metadata_line:
        return None

    content = "\n".join(lines[2:]).strip()
    if not content:
        return None

    title, author = split_title_author(title_line)
    return ParsedEntry(
        book_title=title,
        author=author,
        kindle_title=title_line,
        content=content,
        location=extract_location(metadata_line),
        date_highlighted=extract_date(metadata_line),
        content_hash=content_hash(title_line, content),
    )


def parse_clippings(file_content: str) -> list[ParsedEntry]:
    """Parse a whole clippings export into highlight entries, in file order."""

    entries: list[ParsedEntry] = []
    for segment in file_content.split(ENTRY_DELIMITER):
        entry = parse_entry(segment)
        if entry is not None:
            entries.append(entry)
    return entries
