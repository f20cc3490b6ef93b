"""Highlight fingerprinting used as the at-most-once import key."""

from __future__ import annotations

import hashlib


def content_hash(kindle_title: str, content: str) -> str:
    """Return the SHA-256 hex digest of ``kindle_title + content``.

    Location and date are not part of the key: the same passage captured
    on two different days yields the same digest.
    """

    return hashlib.sha256((kindle_title + content).encode("utf-8")).hexdigest()
