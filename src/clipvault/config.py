"""Runtime configuration for clipvault commands."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Mapping


DEFAULT_SEARCH_DEBOUNCE_MS = 200
DEFAULT_WATCH_DEBOUNCE_SECONDS = 2.0
DEFAULT_LOG_LEVEL = "INFO"
DATABASE_FILE_NAME = "highlights.db"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def default_db_path(home: Path | None = None) -> Path:
    """Prefer a synced Dropbox app folder when present, else local data dir."""

    root = home if home is not None else Path.home()
    dropbox_dir = root / "Dropbox" / "Apps" / "KindleHighlights"
    if dropbox_dir.is_dir():
        return dropbox_dir / DATABASE_FILE_NAME
    return root / ".local" / "share" / "clipvault" / DATABASE_FILE_NAME


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    value = int(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_positive_float(*, name: str, raw_value: str, minimum: float = 0.001) -> float:
    value = float(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class ClipvaultSettings:
    """Validated settings shared by the command line tools."""

    db_path: Path
    search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS
    watch_debounce_seconds: float = DEFAULT_WATCH_DEBOUNCE_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        home: Path | None = None,
    ) -> "ClipvaultSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        db_path_raw = source.get("CLIPVAULT_DB_PATH")
        if db_path_raw is None:
            db_path = default_db_path(home)
        elif not db_path_raw.strip():
            raise ValueError("CLIPVAULT_DB_PATH cannot be empty")
        else:
            db_path = Path(db_path_raw.strip()).expanduser()

        debounce_raw = source.get("CLIPVAULT_SEARCH_DEBOUNCE_MS", str(DEFAULT_SEARCH_DEBOUNCE_MS)).strip()
        watch_raw = source.get(
            "CLIPVAULT_WATCH_DEBOUNCE_SECONDS", str(DEFAULT_WATCH_DEBOUNCE_SECONDS)
        ).strip()
        log_level = source.get("CLIPVAULT_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()

        if not debounce_raw:
            raise ValueError("CLIPVAULT_SEARCH_DEBOUNCE_MS cannot be empty")
        if not watch_raw:
            raise ValueError("CLIPVAULT_WATCH_DEBOUNCE_SECONDS cannot be empty")
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"CLIPVAULT_LOG_LEVEL is not a logging level: {log_level or '<empty>'}")

        return cls(
            db_path=db_path,
            search_debounce_ms=_parse_positive_int(
                name="CLIPVAULT_SEARCH_DEBOUNCE_MS",
                raw_value=debounce_raw,
                minimum=1,
            ),
            watch_debounce_seconds=_parse_positive_float(
                name="CLIPVAULT_WATCH_DEBOUNCE_SECONDS",
                raw_value=watch_raw,
            ),
            log_level=log_level,
        )


def configure_logging(settings: ClipvaultSettings) -> None:
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
