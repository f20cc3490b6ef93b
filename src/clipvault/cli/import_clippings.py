"""CLI command for importing a Kindle ``My Clippings.txt`` export."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from clipvault.config import ClipvaultSettings, configure_logging
from clipvault.ingestion.importer import ClippingsImporter
from clipvault.ingestion.reader import ClippingsReadError
from clipvault.search.repository import StoreConnectionError


load_dotenv()

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import Kindle clippings into the highlight store")
    parser.add_argument("--path", required=True, help="Path to My Clippings.txt")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default from CLIPVAULT_DB_PATH)")
    args = parser.parse_args(argv)

    try:
        settings = ClipvaultSettings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings)

    source_path = Path(args.path)
    db_path = Path(args.db_path) if args.db_path else settings.db_path

    try:
        with ClippingsImporter.from_db_path(db_path) as importer:
            result = importer.import_file(source_path)
    except (StoreConnectionError, ClippingsReadError) as exc:
        logger.error("Import aborted: %s", exc)
        print(str(exc), file=sys.stderr)
        return 2

    payload = {
        "path": str(source_path),
        **result.to_dict(),
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
