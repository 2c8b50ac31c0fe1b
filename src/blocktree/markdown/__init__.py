"""Markdown import and export for block trees."""

from __future__ import annotations

from .parser import parse_markdown
from .renderer import render_markdown
from .types import BlockOperation, MarkdownParseResult, MarkdownRenderResult

__all__ = [
    "BlockOperation",
    "MarkdownParseResult",
    "MarkdownRenderResult",
    "parse_markdown",
    "render_markdown",
]
