from __future__ import annotations

import codecs
from pathlib import Path

import pytest

from clipvault.ingestion.reader import ClippingsReadError, decode_clippings, detect_encoding, read_clippings_file


SAMPLE = "Café Society (René Auteur)\n- Your Highlight on Location 1\n\nnaïve résumé\n==========\n"


def test_bom_prefixed_utf8_is_decoded_without_bom(tmp_path: Path) -> None:
    path = tmp_path / "My Clippings.txt"
    path.write_bytes(codecs.BOM_UTF8 + SAMPLE.encode("utf-8"))

    text = read_clippings_file(path)

    assert detect_encoding(path.read_bytes()) == "utf-8-sig"
    assert text == SAMPLE


def test_plain_utf8_is_detected() -> None:
    assert detect_encoding(SAMPLE.encode("utf-8")) == "utf-8"
    assert decode_clippings(SAMPLE.encode("utf-8")) == SAMPLE


def test_legacy_single_byte_encoding_falls_back_to_detection() -> None:
    raw = (SAMPLE * 20).encode("cp1252")

    text = decode_clippings(raw)

    assert "==========" in text
    assert "Location 1" in text


def test_missing_file_raises_read_error(tmp_path: Path) -> None:
    missing = tmp_path / "absent.txt"

    with pytest.raises(ClippingsReadError) as excinfo:
        read_clippings_file(missing)

    assert excinfo.value.path == missing
    assert "absent.txt" in str(excinfo.value)
