"""Clippings parsing and import interfaces."""

from .importer import ClippingsImporter
from .models import ImportResult, ParsedEntry
from .parser import parse_clippings

__all__ = ["ClippingsImporter", "ImportResult", "ParsedEntry", "parse_clippings"]
