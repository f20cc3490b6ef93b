"""Read clippings exports from disk with charset detection."""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from pathlib import Path

from charset_normalizer import from_bytes


@dataclass(slots=True)
class ClippingsReadError(Exception):
    """Raised when a clippings file cannot be read or decoded."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


def detect_encoding(raw: bytes) -> str:
    """Pick a codec for ``raw``; Kindle devices write UTF-8 with a BOM."""

    if raw.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"
    try:
        raw.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        pass

    best = from_bytes(raw).best()
    if best and best.encoding:
        return best.encoding
    raise ValueError("Could not detect clippings encoding")


def decode_clippings(raw: bytes) -> str:
    return raw.decode(detect_encoding(raw))


def read_clippings_file(path: str | Path) -> str:
    source = Path(path).expanduser()
    try:
        raw = source.read_bytes()
    except OSError as exc:
        raise ClippingsReadError(source, f"Failed to read clippings file: {exc}") from exc

    try:
        return decode_clippings(raw)
    except (ValueError, LookupError) as exc:
        raise ClippingsReadError(source, f"Failed to decode clippings file: {exc}") from exc
