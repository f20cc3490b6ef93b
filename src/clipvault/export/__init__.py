"""Export formats for highlight lists."""

from .markdown import render_markdown

__all__ = ["render_markdown"]
