"""CLI entrypoint listing books with their highlight counts."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from clipvault.config import ClipvaultSettings, configure_logging
from clipvault.search.repository import HighlightRepository, StoreConnectionError


load_dotenv()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="List imported books, newest first")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default from CLIPVAULT_DB_PATH)")
    parser.add_argument("--with-highlights", action="store_true", help="Include each book's highlights")
    args = parser.parse_args(argv)

    try:
        settings = ClipvaultSettings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings)

    db_path = Path(args.db_path) if args.db_path else settings.db_path
    try:
        with HighlightRepository(db_path) as repository:
            books: list[dict[str, object]] = []
            for book in repository.books:
                entry: dict[str, object] = book.to_dict()
                if args.with_highlights:
                    entry["highlights"] = [
                        highlight.to_dict() for highlight in repository.get_highlights_for_book(book.id)
                    ]
                books.append(entry)
    except StoreConnectionError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    payload = {"count": len(books), "books": books}
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
