"""Markdown rendering for highlight lists."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable

from clipvault.search.models import HighlightRecord


UNKNOWN_BOOK = "Unknown Book"
FAVORITE_MARKER = "\u2b50"

_MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def format_display_date(value: date) -> str:
    """Format as ``Jan 15, 2024`` independent of the process locale."""

    return f"{_MONTH_ABBREVIATIONS[value.month - 1]} {value.day}, {value.year}"


def _quote(text: str) -> list[str]:
    return [f"> {line}" if line else ">" for line in text.splitlines()] or [">"]


def format_highlight(highlight: HighlightRecord) -> str:
    quoted = _quote(highlight.content)
    if highlight.is_favorite:
        quoted[0] = quoted[0].replace(">", f"> {FAVORITE_MARKER}", 1)

    metadata: list[str] = []
    if highlight.location:
        metadata.append(highlight.location)
    if highlight.date_highlighted is not None:
        metadata.append(format_display_date(highlight.date_highlighted))
    if metadata:
        quoted.append(">")
        quoted.append("> \u2014 " + " | ".join(metadata))

    quoted.append("")
    return "\n".join(quoted)


def render_markdown(
    highlights: Iterable[HighlightRecord],
    *,
    title: str | None = None,
    group_by_book: bool = False,
    exported_on: date | None = None,
) -> str:
    lines: list[str] = []
    if title:
        lines.extend([f"# {title}", ""])

    stamp = format_display_date(exported_on or date.today())
    lines.extend([f"*Exported from Kindle Highlights on {stamp}*", "", "---", ""])

    if group_by_book:
        grouped: dict[str, list[HighlightRecord]] = defaultdict(list)
        for highlight in highlights:
            grouped[highlight.book_title or UNKNOWN_BOOK].append(highlight)
        for book_title in sorted(grouped):
            lines.extend([f"## {book_title}", ""])
            lines.extend(format_highlight(highlight) for highlight in grouped[book_title])
    else:
        lines.extend(format_highlight(highlight) for highlight in highlights)

    return "\n".join(lines)
