"""Parse Markdown into block-creation operations.

This module converts Markdown text into an ordered list of BlockOperation
records using the mistletoe library for parsing. Constructs the block
model cannot hold are degraded (and recorded as warnings) rather than
failing the import.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from mistletoe import Document
from mistletoe.block_token import (
    BlockCode,
    CodeFence,
    Heading,
    HtmlBlock,
    List,
    ListItem,
    Paragraph,
    Quote,
    SetextHeading,
    Table,
    TableCell,
    ThematicBreak,
)
from mistletoe.html_renderer import HtmlRenderer
from mistletoe.span_token import AutoLink, Image, LineBreak, Link, RawText

from ..config import LIMITS
from .inline import extract_text, render_inline
from .types import BlockOperation, MarkdownParseResult, WarningLog

logger = logging.getLogger(__name__)

TASK_RE = re.compile(r"^\[(\s|x|X)\]\s+([\s\S]*)$")
BARE_URL_RE = re.compile(r"^https?://\S+$")

IMAGE_WARNING = (
    "Markdown images were imported as bookmark blocks "
    "(external image blobs are not auto-uploaded)."
)
HTML_WARNING = "HTML blocks were imported as plain paragraph text."
FLATTENED_WARNING = "Nested markdown lists were flattened to sequential list items."
DEPTH_WARNING = "List nesting depth was reduced during markdown import."
TABLE_WARNING = "Unsupported markdown table structure was ignored."


def parse_markdown(markdown: str | None) -> MarkdownParseResult:
    """Parse Markdown text into block operations.

    Args:
        markdown: The Markdown text to parse.

    Returns:
        MarkdownParseResult with operations in document order, de-duplicated
        warnings and stats.
    """
    source = markdown or ""
    log = WarningLog()
    operations: list[BlockOperation] = []

    # HtmlRenderer registers the HTML block/span tokens until exit
    with HtmlRenderer():
        doc = Document(source)

    for token in doc.children or ():
        operations.extend(_convert_token(token, log))

    if log.unsupported_count:
        logger.debug(
            "Markdown import was lossy: %d unsupported constructs", log.unsupported_count
        )

    return MarkdownParseResult(
        operations=operations,
        warnings=log.warnings,
        input_chars=len(source),
        unsupported_count=log.unsupported_count,
    )


def _convert_token(token: Any, log: WarningLog) -> list[BlockOperation]:
    """Convert a mistletoe block token to zero or more operations."""
    if isinstance(token, (Heading, SetextHeading)):
        return [_convert_heading(token)]
    elif isinstance(token, Paragraph):
        return _convert_paragraph(token, log)
    elif isinstance(token, (BlockCode, CodeFence)):
        return [_convert_code(token)]
    elif isinstance(token, ThematicBreak):
        return [BlockOperation(type="divider")]
    elif isinstance(token, Quote):
        text = "\n".join(_quote_lines(token)).strip()
        return [BlockOperation(type="quote", text=text)] if text else []
    elif isinstance(token, List):
        return _convert_list(token, log, depth=0)
    elif isinstance(token, Table):
        return _convert_table(token, log)
    elif isinstance(token, HtmlBlock):
        raw = _html_content(token).strip()
        if not raw:
            return []
        log.add(HTML_WARNING)
        return [BlockOperation(type="paragraph", text=raw)]

    log.add(f"Unsupported markdown block '{type(token).__name__}' was ignored.")
    return []


def _convert_heading(token: Any) -> BlockOperation:
    level = max(1, min(6, int(getattr(token, "level", 1) or 1)))
    return BlockOperation(type="heading", level=level, text=render_inline(token.children).strip())


def _convert_paragraph(token: Paragraph, log: WarningLog) -> list[BlockOperation]:
    children = [
        child for child in token.children or ()
        if not isinstance(child, LineBreak)
        and not (isinstance(child, RawText) and not child.content.strip())
    ]

    if len(children) == 1:
        only = children[0]
        if isinstance(only, Link) and only.target:
            caption = render_inline(only.children).strip() or only.target
            return [BlockOperation(type="bookmark", url=only.target, caption=caption)]
        if isinstance(only, AutoLink):
            url = getattr(only, "target", "") or extract_text(only)
            return [BlockOperation(type="bookmark", url=url, caption=url)]
        if isinstance(only, Image):
            if not only.src:
                return []
            log.add(IMAGE_WARNING)
            return [
                BlockOperation(type="bookmark", url=only.src, caption=extract_text(only) or None)
            ]

    text = render_inline(token.children).strip()
    if not text:
        return []
    if BARE_URL_RE.match(text):
        return [BlockOperation(type="bookmark", url=text, caption=text)]
    return [BlockOperation(type="paragraph", text=text)]


def _code_text(token: Any) -> str:
    text = extract_text(token)
    return text[:-1] if text.endswith("\n") else text


def _convert_code(token: BlockCode | CodeFence) -> BlockOperation:
    language = (getattr(token, "language", "") or "").strip() or None
    return BlockOperation(type="code", text=_code_text(token), language=language)


def _quote_lines(token: Any) -> list[str]:
    """Text lines of a block quote, with code embedded as fenced text."""
    lines: list[str] = []
    for child in token.children or ():
        if isinstance(child, (BlockCode, CodeFence)):
            language = (getattr(child, "language", "") or "").strip()
            lines.append(f"```{language}\n{_code_text(child)}\n```")
        elif isinstance(child, (Paragraph, Heading, SetextHeading, TableCell)):
            line = render_inline(child.children).strip()
            if line:
                lines.append(line)
        elif isinstance(child, Table):
            if getattr(child, "header", None) is not None:
                lines.extend(_quote_lines(child.header))
            lines.extend(_quote_lines(child))
        elif isinstance(child, HtmlBlock):
            raw = _html_content(child).strip()
            if raw:
                lines.append(raw)
        elif getattr(child, "children", None):
            lines.extend(_quote_lines(child))
    return lines


def _convert_list(token: List, log: WarningLog, depth: int) -> list[BlockOperation]:
    """One list operation per item; nested lists follow their parent item."""
    default_style = "bulleted" if token.start is None else "numbered"
    operations: list[BlockOperation] = []

    for item in token.children or ():
        if not isinstance(item, ListItem):
            log.add("Malformed markdown list item was ignored.")
            continue

        item_text = ""
        nested: list[BlockOperation] = []
        has_nested = False
        for child in item.children or ():
            if isinstance(child, List):
                has_nested = True
                nested.extend(_convert_list(child, log, depth + 1))
            elif not item_text and isinstance(child, (Paragraph, Heading, SetextHeading)):
                item_text = render_inline(child.children).strip()

        style = default_style
        checked = None
        match = TASK_RE.match(item_text)
        if match:
            style = "todo"
            checked = match.group(1).lower() == "x"
            item_text = match.group(2)

        operations.append(BlockOperation(type="list", text=item_text, style=style, checked=checked))
        if has_nested:
            log.add(FLATTENED_WARNING)
        operations.extend(nested)

    if depth > 0 and operations:
        log.add(DEPTH_WARNING)
    return operations


def _convert_table(token: Table, log: WarningLog) -> list[BlockOperation]:
    rows: list[list[str]] = []
    header = getattr(token, "header", None)
    for row in ([header] if header is not None else []) + list(token.children or ()):
        rows.append([render_inline(cell.children).strip() for cell in row.children or ()])

    columns = max((len(row) for row in rows), default=0)
    if not rows or columns == 0:
        log.add(TABLE_WARNING)
        return []

    limit = LIMITS.MAX_TABLE_DIMENSION
    if len(rows) > limit or columns > limit:
        log.add(f"Markdown table larger than {limit}x{limit} was truncated.")
        rows = [row[:limit] for row in rows[:limit]]
        columns = min(columns, limit)

    table_data = [row + [""] * (columns - len(row)) for row in rows]
    return [
        BlockOperation(type="table", rows=len(table_data), columns=columns, table_data=table_data)
    ]


def _html_content(token: Any) -> str:
    content = getattr(token, "content", None)
    if isinstance(content, str):
        return content
    return extract_text(token)
