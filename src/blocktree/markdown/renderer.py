"""Render a block tree to Markdown.

This module walks a NodeTable from a list of root ids and emits Markdown
text. Anything that cannot be expressed is skipped or replaced with a
comment placeholder, and recorded as a warning.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from ..blocks.models import EMBED_FLAVOURS, BlockNode, Flavour, ListStyle, NodeTable, TextRun
from .types import MarkdownRenderResult, WarningLog

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^h([1-6])$")
EMPTY_TABLE = ["| |", "| --- |"]


@dataclass
class _Chunk:
    lines: list[str] = field(default_factory=list)
    is_list: bool = False


class _RenderState:
    def __init__(self, table: NodeTable, blob_url_prefix: str) -> None:
        self.table = table
        self.blob_url_prefix = blob_url_prefix
        self.log = WarningLog()
        self.visited: set[str] = set()


def render_markdown(
    table: NodeTable,
    root_ids: list[str],
    *,
    blob_url_prefix: str = "blob://",
) -> MarkdownRenderResult:
    """Render the subtrees under root_ids to Markdown.

    Args:
        table: The node table.
        root_ids: Blocks to render, in order (typically the page's children).
        blob_url_prefix: Prefix for image source ids.

    Returns:
        MarkdownRenderResult with the text, warnings and stats.
    """
    state = _RenderState(table, blob_url_prefix)
    chunks = [_render_block(root_id, 0, state) for root_id in root_ids]
    lines = _join_chunks([chunk for chunk in chunks if chunk.lines])

    return MarkdownRenderResult(
        markdown="\n".join(lines).rstrip(),
        warnings=state.log.warnings,
        block_count=len(state.visited),
        unsupported_count=state.log.unsupported_count,
    )


def _join_chunks(chunks: list[_Chunk]) -> list[str]:
    """Blank line between chunks, except between two list chunks."""
    lines: list[str] = []
    previous: _Chunk | None = None
    for chunk in chunks:
        if previous is not None and not (previous.is_list and chunk.is_list):
            lines.append("")
        lines.extend(chunk.lines)
        previous = chunk
    return lines


def _render_block(block_id: str, list_depth: int, state: _RenderState) -> _Chunk:
    """Render a single block (and its children) to a chunk of lines."""
    if block_id in state.visited:
        return _Chunk()
    state.visited.add(block_id)

    block = state.table.get(block_id)
    if block is None:
        state.log.add(f"Missing block '{block_id}' while exporting markdown.")
        logger.warning("Missing block %s while exporting markdown", block_id)
        return _Chunk()

    flavour = block.known_flavour()

    if flavour == Flavour.PARAGRAPH:
        return _render_paragraph(block, list_depth, state)
    elif flavour == Flavour.LIST:
        return _render_list(block, list_depth, state)
    elif flavour == Flavour.CODE:
        return _render_code(block)
    elif flavour == Flavour.DIVIDER:
        return _Chunk(["---"])
    elif flavour == Flavour.BOOKMARK or flavour in EMBED_FLAVOURS:
        return _render_bookmark(block, state)
    elif flavour == Flavour.IMAGE:
        return _render_image(block, state)
    elif flavour == Flavour.TABLE:
        return _render_table(block, state)
    elif block.is_container():
        return _Chunk(_join_chunks(_render_children(block, list_depth, state)))

    flavour_value = block.flavour_value or "unknown"
    state.log.add(
        f"Unsupported block flavour '{flavour_value}' was exported as a comment placeholder."
    )
    return _Chunk([f"<!-- unsupported: flavour={flavour_value} blockId={block.id} -->"])


def _render_children(block: BlockNode, list_depth: int, state: _RenderState) -> list[_Chunk]:
    chunks = []
    for child_id in block.children:
        chunk = _render_block(child_id, list_depth, state)
        if chunk.lines:
            chunks.append(chunk)
    return chunks


def _render_paragraph(block: BlockNode, list_depth: int, state: _RenderState) -> _Chunk:
    """Heading, quote or plain paragraph, then children at the same depth."""
    text = _render_rich_text(block.text)
    match = HEADING_RE.match(block.type or "")
    if match:
        lines = [f"{'#' * int(match.group(1))} {text}".rstrip()]
    elif block.type == "quote":
        lines = [f"> {line}" for line in text.split("\n")]
    else:
        lines = [text]

    for chunk in _render_children(block, list_depth, state):
        lines.extend(chunk.lines)
    return _Chunk([line for line in lines if line])


def _render_list(block: BlockNode, list_depth: int, state: _RenderState) -> _Chunk:
    """List item with marker; list children indent one level deeper."""
    indent = "  " * max(0, list_depth)
    if block.type == ListStyle.NUMBERED.value:
        marker = "1."
    elif block.type == ListStyle.TODO.value:
        marker = "- [x]" if block.props.get("checked") else "- [ ]"
    else:
        marker = "-"
    text = _render_rich_text(block.text)
    lines = [f"{indent}{marker} {text}" if text else f"{indent}{marker}"]

    for child_id in block.children:
        child = state.table.get(child_id)
        child_is_list = child is not None and child.known_flavour() == Flavour.LIST
        chunk = _render_block(child_id, list_depth + 1 if child_is_list else list_depth, state)
        lines.extend(chunk.lines)
    return _Chunk(lines, is_list=True)


def _render_code(block: BlockNode) -> _Chunk:
    language = block.props.get("language") or ""
    return _Chunk([f"```{language}", block.plain_text(), "```"])


def _render_bookmark(block: BlockNode, state: _RenderState) -> _Chunk:
    url = str(block.props.get("url") or "").strip()
    if not url:
        state.log.add(f"Bookmark/embed block '{block.id}' had no URL and was skipped.")
        return _Chunk()
    label = str(block.props.get("caption") or "").strip() or block.plain_text().strip() or url
    return _Chunk([f"[{label}]({url})"])


def _render_image(block: BlockNode, state: _RenderState) -> _Chunk:
    source = str(block.props.get("source_id") or "").strip()
    if not source:
        state.log.add(f"Image block '{block.id}' had no sourceId and was skipped.")
        return _Chunk()
    alt = str(block.props.get("caption") or "").strip() or "image"
    return _Chunk([f"![{alt}]({state.blob_url_prefix}{source})"])


def _escape_pipe(value: str) -> str:
    return value.replace("|", "\\|")


def _render_table(block: BlockNode, state: _RenderState) -> _Chunk:
    data = block.table_data() or []
    columns = max((len(row) for row in data), default=0)
    if not data or columns == 0:
        state.log.add(f"Table block '{block.id}' had no readable cell data.")
        return _Chunk(list(EMPTY_TABLE))

    rows = [row + [""] * (columns - len(row)) for row in data]
    lines = [
        f"| {' | '.join(_escape_pipe(cell) for cell in rows[0])} |",
        f"| {' | '.join(['---'] * columns)} |",
    ]
    lines.extend(f"| {' | '.join(_escape_pipe(cell) for cell in row)} |" for row in rows[1:])
    return _Chunk(lines)


# =============================================================================
# Inline Runs
# =============================================================================


def _render_rich_text(runs: list[TextRun] | None) -> str:
    """Render text runs to Markdown."""
    if not runs:
        return ""
    return "".join(_render_span(run) for run in runs).strip()


def _render_span(run: TextRun) -> str:
    """Render a single run with its formatting marks."""
    content = run.text
    if not content:
        return ""

    # Code formatting overrides others
    if run.code:
        content = f"`{content}`"
    elif run.bold and run.italic:
        content = f"***{content}***"
    elif run.bold:
        content = f"**{content}**"
    elif run.italic:
        content = f"*{content}*"

    if run.strikethrough and not run.code:
        content = f"~~{content}~~"

    if run.link:
        content = f"[{content}]({run.link})"

    return content
