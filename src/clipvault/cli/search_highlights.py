"""CLI entrypoint for full-text and title/author highlight search."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from clipvault.config import ClipvaultSettings, configure_logging
from clipvault.search.query import MIN_QUERY_LENGTH
from clipvault.search.repository import HighlightRepository, StoreConnectionError


load_dotenv()


def _positive_int(raw_value: str) -> int:
    value = int(raw_value)
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Search stored highlights by content, title, or author")
    parser.add_argument("--query", required=True, help="Text to search for")
    parser.add_argument("--limit", type=_positive_int, default=None, help="Maximum number of results")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default from CLIPVAULT_DB_PATH)")
    args = parser.parse_args(argv)

    try:
        settings = ClipvaultSettings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings)

    db_path = Path(args.db_path) if args.db_path else settings.db_path
    limit = args.limit

    try:
        with HighlightRepository(db_path) as repository:
            hits = repository.search(args.query, limit=limit)
    except StoreConnectionError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    payload = {
        "query": args.query,
        "min_query_length": MIN_QUERY_LENGTH,
        "limit": limit,
        "count": len(hits),
        "results": [hit.to_dict() for hit in hits],
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
