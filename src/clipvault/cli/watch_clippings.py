"""CLI entrypoint that re-imports the clippings file whenever it changes."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from clipvault.automation.watcher import ClippingsFileWatcher
from clipvault.config import ClipvaultSettings, configure_logging
from clipvault.ingestion.importer import ClippingsImporter
from clipvault.ingestion.reader import ClippingsReadError
from clipvault.search.repository import StoreConnectionError


load_dotenv()

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch My Clippings.txt and import new highlights")
    parser.add_argument("--path", required=True, help="Path to My Clippings.txt (e.g. on a mounted Kindle)")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default from CLIPVAULT_DB_PATH)")
    parser.add_argument("--debounce", type=float, default=None, help="Debounce delay in seconds")
    parser.add_argument("--import-on-start", action="store_true", help="Import once before watching")
    return parser.parse_args(argv)


async def _run_watcher(args: argparse.Namespace, settings: ClipvaultSettings) -> int:
    clippings_path = Path(args.path).expanduser()
    if not clippings_path.parent.is_dir():
        LOGGER.error("Clippings directory must exist: %s", clippings_path.parent)
        return 2

    db_path = Path(args.db_path) if args.db_path else settings.db_path
    debounce = float(args.debounce) if args.debounce is not None else settings.watch_debounce_seconds

    try:
        importer = ClippingsImporter.from_db_path(db_path)
    except StoreConnectionError as exc:
        LOGGER.error("Cannot open highlight store: %s", exc)
        return 2

    async def _import(path: Path) -> None:
        LOGGER.info("Clippings changed: %s", path)
        try:
            result = await asyncio.to_thread(importer.import_file, path)
        except ClippingsReadError as exc:
            LOGGER.error("Import failed: %s", exc)
            return
        LOGGER.info("Imported %d new highlights (%d skipped)", result.imported, result.skipped)

    with importer:
        if args.import_on_start and clippings_path.exists():
            await _import(clippings_path)

        watcher = ClippingsFileWatcher(clippings_path, _import, debounce_seconds=debounce)
        await watcher.start()
        LOGGER.info("Watching %s (debounce %.1fs)", clippings_path, debounce)

        try:
            while True:
                await asyncio.sleep(1.0)
        finally:
            watcher.stop()
            LOGGER.info("Watcher stopped cleanly")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = ClipvaultSettings.from_env()
    except ValueError as exc:
        logging.basicConfig(level=logging.INFO)
        LOGGER.error("Invalid configuration: %s", exc)
        return 2
    configure_logging(settings)
    try:
        return asyncio.run(_run_watcher(args, settings))
    except KeyboardInterrupt:
        LOGGER.info("Shutdown requested")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
