from __future__ import annotations

import hashlib

from clipvault.ingestion.hashing import content_hash


def test_hash_is_lowercase_sha256_of_title_plus_content() -> None:
    expected = hashlib.sha256("Book (A)some text".encode("utf-8")).hexdigest()

    digest = content_hash("Book (A)", "some text")

    assert digest == expected
    assert len(digest) == 64
    assert digest == digest.lower()


def test_hash_is_stable_and_input_sensitive() -> None:
    assert content_hash("T", "c") == content_hash("T", "c")
    assert content_hash("T", "c") != content_hash("T", "c ")
    assert content_hash("T", "\u00e9") != content_hash("T", "e\u0301")
