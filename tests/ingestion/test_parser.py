from __future__ import annotations

from datetime import datetime

from clipvault.ingestion.hashing import content_hash
from clipvault.ingestion.parser import (
    extract_location,
    parse_clippings,
    parse_entry,
    parse_kindle_date,
    split_title_author,
)


DELIMITER = "=========="


def _highlight(
    title_line: str,
    body: str,
    *,
    metadata: str = "- Your Highlight on Location 100-105 | Added on Monday, January 15, 2024 10:30:00 AM",
) -> str:
    return f"{title_line}\n{metadata}\n\n{body}\n{DELIMITER}\n"


def test_parses_single_highlight_with_all_fields() -> None:
    entries = parse_clippings(_highlight("The Great Gatsby (F. Scott Fitzgerald)", "So we beat on, boats against the current."))

    assert len(entries) == 1
    entry = entries[0]
    assert entry.book_title == "The Great Gatsby"
    assert entry.author == "F. Scott Fitzgerald"
    assert entry.kindle_title == "The Great Gatsby (F. Scott Fitzgerald)"
    assert entry.content == "So we beat on, boats against the current."
    assert entry.location == "Location 100-105"
    assert entry.date_highlighted == datetime(2024, 1, 15, 10, 30, 0)
    assert entry.content_hash == content_hash(entry.kindle_title, entry.content)


def test_multi_line_highlight_keeps_interior_newlines() -> None:
    entries = parse_clippings(_highlight("Poems (Anon)", "first line\nsecond line\nthird line"))

    assert entries[0].content == "first line\nsecond line\nthird line"


def test_blank_lines_inside_body_are_dropped() -> None:
    entries = parse_clippings(_highlight("Poems (Anon)", "first\n\n\nsecond"))

    assert entries[0].content == "first\nsecond"


def test_title_without_author() -> None:
    entries = parse_clippings(_highlight("Untitled Notes", "body text"))

    assert entries[0].book_title == "Untitled Notes"
    assert entries[0].author is None
    assert entries[0].kindle_title == "Untitled Notes"


def test_page_location_used_when_no_kindle_location() -> None:
    entries = parse_clippings(
        _highlight(
            "Paper Book (Writer)",
            "text",
            metadata="- Your Highlight on page 42 | Added on Monday, January 15, 2024 10:30:00 AM",
        )
    )

    assert entries[0].location == "Page 42"


def test_location_preferred_over_page() -> None:
    assert extract_location("- Your Highlight on page 7 | Location 88-90 | Added on ...") == "Location 88-90"
    assert extract_location("- Your Highlight | Added on Monday") is None


def test_notes_and_bookmarks_are_skipped() -> None:
    content = (
        _highlight("Book (A)", "kept highlight")
        + "Book (A)\n- Your Note on Location 12 | Added on Monday, January 15, 2024 10:30:00 AM\n\nmy note\n"
        + f"{DELIMITER}\n"
        + "Book (A)\n- Your Bookmark on Location 20 | Added on Monday, January 15, 2024 10:30:00 AM\n\n"
        + f"{DELIMITER}\n"
    )

    entries = parse_clippings(content)

    assert [entry.content for entry in entries] == ["kept highlight"]


def test_truncated_entry_is_skipped() -> None:
    content = _highlight("Book (A)", "complete") + "Book (A)\n"

    entries = parse_clippings(content)

    assert len(entries) == 1
    assert entries[0].content == "complete"


def test_highlight_with_empty_body_is_skipped() -> None:
    content = "Book (A)\n- Your Highlight on Location 1 | Added on Monday, January 15, 2024 10:30:00 AM\n\n   \n" + DELIMITER

    assert parse_clippings(content) == []


def test_unknown_metadata_kind_is_skipped() -> None:
    assert parse_entry("Book (A)\n- Your Clip on Location 1\n\ntext") is None


def test_empty_and_delimiter_only_input() -> None:
    assert parse_clippings("") == []
    assert parse_clippings(f"{DELIMITER}\n{DELIMITER}\n\n{DELIMITER}") == []


def test_malformed_input_does_not_raise() -> None:
    assert parse_clippings("random text without structure\nmore noise") == []


def test_identical_title_and_content_share_hash() -> None:
    first, second = parse_clippings(_highlight("Book (A)", "same text") + _highlight("Book (A)", "same text"))

    assert first.content_hash == second.content_hash


def test_hash_changes_with_title_or_content() -> None:
    entries = parse_clippings(
        _highlight("Book (A)", "same text")
        + _highlight("Other Book (A)", "same text")
        + _highlight("Book (A)", "different text")
    )

    assert len({entry.content_hash for entry in entries}) == 3


def test_nested_parentheses_use_last_group_as_author() -> None:
    assert split_title_author("Book (Author (Editor))") == ("Book", "Editor")


def test_title_with_parenthetical_keeps_it() -> None:
    assert split_title_author("Dune (Dune Chronicles, Book 1) (Frank Herbert)") == (
        "Dune (Dune Chronicles, Book 1)",
        "Frank Herbert",
    )


def test_empty_author_group_keeps_whole_line() -> None:
    assert split_title_author("Strange Title ()") == ("Strange Title ()", None)
    assert split_title_author("(Only Author)") == ("(Only Author)", None)


def test_special_characters_are_preserved() -> None:
    body = "Quotes \"like this\" & symbols: <>*%_ — café 日本"
    entries = parse_clippings(_highlight("Café (José)", body))

    assert entries[0].content == body
    assert entries[0].book_title == "Café"
    assert entries[0].author == "José"


def test_leading_bom_is_ignored_on_title_line() -> None:
    entries = parse_clippings("\ufeff" + _highlight("Book (A)", "text"))

    assert entries[0].kindle_title == "Book (A)"


def test_windows_line_endings() -> None:
    content = _highlight("Book (A)", "line one\nline two").replace("\n", "\r\n")

    entries = parse_clippings(content)

    assert entries[0].content == "line one\nline two"
    assert entries[0].kindle_title == "Book (A)"


def test_all_date_layouts() -> None:
    assert parse_kindle_date("Monday, January 15, 2024 10:30:00 AM") == datetime(2024, 1, 15, 10, 30, 0)
    assert parse_kindle_date("Monday, 15 January 2024 10:30:00") == datetime(2024, 1, 15, 10, 30, 0)
    assert parse_kindle_date("Monday, January 15, 2024, 10:30 AM") == datetime(2024, 1, 15, 10, 30)
    assert parse_kindle_date("Monday, 15 January 2024, 10:30") == datetime(2024, 1, 15, 10, 30)


def test_pm_and_midnight_conversion() -> None:
    assert parse_kindle_date("Friday, March 1, 2024 3:05:09 PM") == datetime(2024, 3, 1, 15, 5, 9)
    assert parse_kindle_date("Friday, March 1, 2024 12:15:00 AM") == datetime(2024, 3, 1, 0, 15, 0)
    assert parse_kindle_date("Friday, March 1, 2024 12:15:00 PM") == datetime(2024, 3, 1, 12, 15, 0)


def test_unparseable_dates_yield_none() -> None:
    assert parse_kindle_date("yesterday") is None
    assert parse_kindle_date("Someday, January 15, 2024 10:30:00 AM") is None
    assert parse_kindle_date("Monday, Smarch 15, 2024 10:30:00 AM") is None
    assert parse_kindle_date("Monday, February 30, 2024 10:30:00 AM") is None
    assert parse_kindle_date("Monday, January 15, 2024 13:30:00 PM") is None


def test_highlight_without_date_still_parses() -> None:
    entries = parse_clippings(_highlight("Book (A)", "text", metadata="- Your Highlight on Location 5"))

    assert entries[0].date_highlighted is None
    assert entries[0].location == "Location 5"


def test_entries_keep_file_order() -> None:
    content = "".join(_highlight("Book (A)", f"passage {index}") for index in range(5))

    entries = parse_clippings(content)

    assert [entry.content for entry in entries] == [f"passage {index}" for index in range(5)]


def test_hash_ignores_location_and_date() -> None:
    first, second = parse_clippings(
        _highlight(
            "Book (A)",
            "same text",
            metadata="- Your Highlight on Location 10 | Added on Monday, January 15, 2024 10:30:00 AM",
        )
        + _highlight(
            "Book (A)",
            "same text",
            metadata="- Your Highlight on page 3 | Added on Tuesday, 16 January 2024, 08:00",
        )
    )

    assert (first.location, second.location) == ("Location 10", "Page 3")
    assert first.date_highlighted != second.date_highlighted
    assert first.content_hash == second.content_hash


def test_bom_inside_body_is_preserved() -> None:
    entries = parse_clippings(_highlight("Book (A)", "\ufeffstarts with bom"))

    assert entries[0].content == "\ufeffstarts with bom"


def test_partial_dates_are_not_completed() -> None:
    assert parse_kindle_date("January 15, 2024") is None
    assert parse_kindle_date("Monday, 10:30:00 AM") is None
    assert parse_kindle_date("") is None
