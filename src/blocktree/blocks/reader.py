"""Flatten a block tree for reads."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .models import BlockNode, Flavour, NodeTable

logger = logging.getLogger(__name__)


@dataclass
class TreeReadResult:
    """Flattened rows in document order plus a plain-text projection."""

    blocks: list[dict[str, Any]] = field(default_factory=list)
    plain_text: str = ""
    warnings: list[str] = field(default_factory=list)
    unsupported_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "blocks": self.blocks,
            "plainText": self.plain_text,
            "warnings": list(self.warnings),
            "stats": {
                "blockCount": len(self.blocks),
                "unsupportedCount": self.unsupported_count,
            },
        }


def block_row(node: BlockNode) -> dict[str, Any]:
    """One flattened output row for a node."""
    return {
        "id": node.id,
        "parentId": node.parent_id,
        "flavour": node.flavour_value,
        "type": node.type,
        "text": node.plain_text() if node.text is not None else None,
        "checked": node.props.get("checked") if node.known_flavour() == Flavour.LIST else None,
        "language": node.props.get("language") if node.known_flavour() == Flavour.CODE else None,
        "childIds": list(node.children),
    }


def _default_roots(table: NodeTable) -> list[str]:
    page = table.page()
    if page is not None:
        return [page.id]
    note = table.find_note()
    return [note.id] if note is not None else []


def read_tree(table: NodeTable, root_ids: list[str] | None = None) -> TreeReadResult:
    """Depth-first read of the whole table.

    Traversal starts at root_ids (default: the page root, else a note).
    Nodes never reached from there are visited afterwards in table order,
    so orphaned subtrees still appear. No node is visited twice.

    Args:
        table: The node table to read.
        root_ids: Optional explicit starting points.

    Returns:
        TreeReadResult with rows, plain text, and dangling-reference warnings.
    """
    result = TreeReadResult()
    visited: set[str] = set()
    texts: list[str] = []
    warned: set[str] = set()

    def visit(start_id: str, referrer: str | None) -> None:
        stack: list[tuple[str, str | None]] = [(start_id, referrer)]
        while stack:
            block_id, parent_ref = stack.pop()
            if block_id in visited:
                continue
            node = table.get(block_id)
            if node is None:
                result.unsupported_count += 1
                message = (
                    f"Missing block '{block_id}' referenced by '{parent_ref}'."
                    if parent_ref
                    else f"Missing block '{block_id}'."
                )
                if message not in warned:
                    warned.add(message)
                    result.warnings.append(message)
                logger.warning("Dangling block reference %s (from %s)", block_id, parent_ref)
                continue

            visited.add(block_id)
            row = block_row(node)
            result.blocks.append(row)
            if row["text"]:
                texts.append(row["text"])
            for child_id in reversed(node.children):
                if child_id not in visited:
                    stack.append((child_id, block_id))

    for root_id in root_ids if root_ids is not None else _default_roots(table):
        visit(root_id, None)
    for block_id in table.ids():
        if block_id not in visited:
            visit(block_id, None)

    result.plain_text = "\n".join(texts)
    return result
