"""CLI command rendering a highlight selection as Markdown."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from clipvault.config import ClipvaultSettings, configure_logging
from clipvault.export.markdown import render_markdown
from clipvault.search.models import HighlightRecord
from clipvault.search.repository import HighlightRepository, StoreConnectionError


load_dotenv()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export highlights to Markdown")
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument("--book-id", type=int, help="Export one book's highlights")
    selection.add_argument("--favorites", action="store_true", help="Export favorite highlights")
    selection.add_argument("--tag-id", type=int, help="Export highlights carrying a tag")
    selection.add_argument("--query", help="Export search results for a query")
    parser.add_argument("--title", default=None, help="Document heading (defaults to the selection name)")
    parser.add_argument("--group-by-book", action="store_true", help="Group highlights under book headings")
    parser.add_argument("--output", default=None, help="Write Markdown to this file instead of stdout")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default from CLIPVAULT_DB_PATH)")
    return parser.parse_args(argv)


def _select(repository: HighlightRepository, args: argparse.Namespace) -> tuple[str | None, list[HighlightRecord]]:
    """Return the default heading and highlights for the chosen selection."""

    if args.book_id is not None:
        book = repository.get_book(args.book_id)
        if book is None:
            raise LookupError(f"Book not found: {args.book_id}")
        return book.title, repository.get_highlights_for_book(book.id)
    if args.favorites:
        return "Favorites", repository.get_favorite_highlights()
    if args.tag_id is not None:
        tag = next((tag for tag in repository.list_tags() if tag.id == args.tag_id), None)
        if tag is None:
            raise LookupError(f"Tag not found: {args.tag_id}")
        return tag.name, repository.get_highlights_for_tag(tag.id)
    if args.query is not None:
        return f"Search: {args.query}", repository.search(args.query)
    return "All Highlights", repository.get_all_highlights()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = ClipvaultSettings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings)

    db_path = Path(args.db_path) if args.db_path else settings.db_path
    try:
        with HighlightRepository(db_path) as repository:
            default_title, highlights = _select(repository, args)
    except StoreConnectionError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except LookupError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    markdown = render_markdown(
        highlights,
        title=args.title or default_title,
        group_by_book=args.group_by_book,
    )

    if args.output is None:
        sys.stdout.write(markdown)
        if not markdown.endswith("\n"):
            sys.stdout.write("\n")
        return 0

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(markdown, encoding="utf-8")
    payload = {"output": str(output_path), "count": len(highlights)}
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
