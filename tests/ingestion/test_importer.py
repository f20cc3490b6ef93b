from __future__ import annotations

from pathlib import Path

import pytest

from clipvault.ingestion.importer import ClippingsImporter
from clipvault.ingestion.models import ImportResult
from clipvault.search.models import WriteOutcome
from clipvault.search.repository import HighlightRepository, StorageError


def _highlight(title_line: str, body: str, location: int = 1) -> str:
    return (
        f"{title_line}\n"
        f"- Your Highlight on Location {location} | Added on Monday, January 15, 2024 10:30:00 AM\n\n"
        f"{body}\n==========\n"
    )


def test_import_counts_new_and_duplicate_entries(tmp_path: Path) -> None:
    content = _highlight("Book (A)", "alpha") + _highlight("Book (A)", "alpha") + _highlight("Book (A)", "beta")

    with ClippingsImporter.from_db_path(tmp_path / "highlights.db") as importer:
        result = importer.import_all(content)
        highlights = importer.repository.get_all_highlights()

    assert result.to_dict() == {"imported": 2, "skipped": 1, "failed": 0, "total": 3}
    assert sorted(highlight.content for highlight in highlights) == ["alpha", "beta"]


def test_reimport_is_idempotent(tmp_path: Path) -> None:
    content = _highlight("Book (A)", "alpha") + _highlight("Other (B)", "beta")

    with ClippingsImporter.from_db_path(tmp_path / "highlights.db") as importer:
        first = importer.import_all(content)
        second = importer.import_all(content)
        assert len(importer.repository.get_all_highlights()) == 2

    assert first.imported == 2
    assert second.imported == 0
    assert second.skipped == 2
    assert second.total == 2


def test_many_entries_across_titles_create_one_book_each(tmp_path: Path) -> None:
    titles = ["First (Ann)", "Second (Bob)", "Third"]
    content = "".join(_highlight(titles[index % 3], f"passage {index}", index) for index in range(50))

    with ClippingsImporter.from_db_path(tmp_path / "highlights.db") as importer:
        result = importer.import_all(content)
        books = importer.repository.books

    assert result.imported == 50
    assert len(books) == 3
    counts = {book.kindle_title: book.highlight_count for book in books}
    assert counts == {"First (Ann)": 17, "Second (Bob)": 17, "Third": 16}
    third = next(book for book in books if book.kindle_title == "Third")
    assert third.author is None


def test_book_resolution_failure_counts_as_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    content = _highlight("Broken (X)", "lost") + _highlight("Fine (Y)", "kept")

    with ClippingsImporter.from_db_path(tmp_path / "highlights.db") as importer:
        real_lookup = importer.repository.find_or_create_book

        def _flaky(*, title: str, author: str | None, kindle_title: str) -> int:
            if kindle_title == "Broken (X)":
                raise StorageError("find_or_create_book", "disk I/O error")
            return real_lookup(title=title, author=author, kindle_title=kindle_title)

        monkeypatch.setattr(importer.repository, "find_or_create_book", _flaky)
        result = importer.import_all(content)
        contents = [highlight.content for highlight in importer.repository.get_all_highlights()]

    assert result.to_dict() == {"imported": 1, "skipped": 1, "failed": 1, "total": 2}
    assert contents == ["kept"]


def test_import_file_reads_from_disk(tmp_path: Path) -> None:
    clippings = tmp_path / "My Clippings.txt"
    clippings.write_text(_highlight("Book (A)", "from disk"), encoding="utf-8-sig")

    with ClippingsImporter(HighlightRepository(tmp_path / "highlights.db")) as importer:
        result = importer.import_file(clippings)
        book = importer.repository.books[0]

    assert result.imported == 1
    assert book.title == "Book"
    assert book.kindle_title == "Book (A)"


def test_empty_input_reports_zero_totals(tmp_path: Path) -> None:
    with ClippingsImporter.from_db_path(tmp_path / "highlights.db") as importer:
        result = importer.import_all("")

    assert result.to_dict() == {"imported": 0, "skipped": 0, "failed": 0, "total": 0}


def test_import_result_record() -> None:
    result = ImportResult(total=3)
    for outcome in (WriteOutcome.CREATED, WriteOutcome.DUPLICATE, WriteOutcome.FAILED):
        result.record(outcome)

    assert (result.imported, result.skipped, result.failed) == (1, 2, 1)


def test_same_passage_with_other_location_and_date_is_a_duplicate(tmp_path: Path) -> None:
    content = (
        "Book (A)\n"
        "- Your Highlight on Location 10 | Added on Monday, January 15, 2024 10:30:00 AM\n\n"
        "shared passage\n==========\n"
        "Book (A)\n"
        "- Your Highlight on page 3 | Added on Tuesday, 16 January 2024, 08:00\n\n"
        "shared passage\n==========\n"
    )

    with ClippingsImporter.from_db_path(tmp_path / "highlights.db") as importer:
        result = importer.import_all(content)
        stored = importer.repository.get_all_highlights()

    assert result.to_dict() == {"imported": 1, "skipped": 1, "failed": 0, "total": 2}
    assert [highlight.location for highlight in stored] == ["Location 10"]
