"""Construct new block nodes.

Each canonical type maps to a flavour, a subtype and a prop factory that
fills in the flavour's full attribute set with its defaults. Nodes are
written through a MutationBatch so a pending note container and the
content node land in the same delta.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .models import BlockNode, Flavour, ListStyle, ParagraphType, runs_from_value
from .mutation import MutationBatch
from .normalize import NormalizedBlockRequest
from .order_keys import key_between, keys_after
from .placement import ResolvedPlacement

logger = logging.getLogger(__name__)

NOTE_XYWH = "[0,0,800,95]"
NOTE_DISPLAY_MODE = "both"

# Canonical type -> node flavour
TYPE_FLAVOURS: dict[str, Flavour] = {
    "paragraph": Flavour.PARAGRAPH,
    "heading": Flavour.PARAGRAPH,
    "quote": Flavour.PARAGRAPH,
    "list": Flavour.LIST,
    "code": Flavour.CODE,
    "divider": Flavour.DIVIDER,
    "callout": Flavour.CALLOUT,
    "latex": Flavour.LATEX,
    "table": Flavour.TABLE,
    "bookmark": Flavour.BOOKMARK,
    "image": Flavour.IMAGE,
    "attachment": Flavour.ATTACHMENT,
}

# Types whose nodes carry inline text
TEXT_TYPES = frozenset({"paragraph", "heading", "quote", "list", "code", "callout"})


@dataclass
class BuildResult:
    """The node created by build_block and where it went."""

    node: BlockNode
    parent_id: str
    index: int
    note_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "blockId": self.node.id,
            "flavour": self.node.flavour_value,
            "type": self.node.type,
            "parentId": self.parent_id,
            "index": self.index,
            "noteId": self.note_id,
        }


# =============================================================================
# Subtype and Prop Factories
# =============================================================================


def subtype_for(request: NormalizedBlockRequest) -> str | None:
    """Node subtype for a normalized request."""
    if request.type == "heading":
        return f"h{request.level}"
    if request.type == "quote":
        return ParagraphType.QUOTE.value
    if request.type == "paragraph":
        return ParagraphType.TEXT.value
    if request.type == "list":
        return request.style
    return None


def _list_props(request: NormalizedBlockRequest, batch: MutationBatch) -> dict[str, Any]:
    return {"checked": request.checked if request.style == ListStyle.TODO.value else False}


def _code_props(request: NormalizedBlockRequest, batch: MutationBatch) -> dict[str, Any]:
    props: dict[str, Any] = {"language": request.language}
    if request.caption is not None:
        props["caption"] = request.caption
    return props


def _latex_props(request: NormalizedBlockRequest, batch: MutationBatch) -> dict[str, Any]:
    return {"latex": request.latex or ""}


def _bookmark_props(request: NormalizedBlockRequest, batch: MutationBatch) -> dict[str, Any]:
    return {
        "url": request.url or "",
        "caption": request.caption,
        "style": request.bookmark_style,
    }


def _image_props(request: NormalizedBlockRequest, batch: MutationBatch) -> dict[str, Any]:
    return {
        "source_id": request.source_id or "",
        "caption": request.caption,
        "size": request.size,
    }


def _attachment_props(request: NormalizedBlockRequest, batch: MutationBatch) -> dict[str, Any]:
    return {
        "source_id": request.source_id or "",
        "name": request.name or "",
        "mime_type": request.mime_type or "",
        "size": request.size,
        "caption": request.caption,
        "embed": request.embed,
    }


def _table_props(request: NormalizedBlockRequest, batch: MutationBatch) -> dict[str, Any]:
    """Rows and columns with order keys, one cell per (row, column)."""
    data = request.table_data or []
    if data and (len(data) > request.rows or any(len(row) > request.columns for row in data)):
        logger.debug(
            "Table data truncated to %dx%d", request.rows, request.columns
        )

    row_ids = [batch.new_id() for _ in range(request.rows)]
    column_ids = [batch.new_id() for _ in range(request.columns)]
    row_keys = keys_after(None, request.rows)
    column_keys = keys_after(None, request.columns)

    cells: dict[str, dict[str, str]] = {}
    for r, row_id in enumerate(row_ids):
        for c, column_id in enumerate(column_ids):
            text = data[r][c] if r < len(data) and c < len(data[r]) else ""
            cells[f"{row_id}:{column_id}"] = {"text": text}

    return {
        "rows": {
            row_id: {"rowId": row_id, "order": key}
            for row_id, key in zip(row_ids, row_keys)
        },
        "columns": {
            column_id: {"columnId": column_id, "order": key}
            for column_id, key in zip(column_ids, column_keys)
        },
        "cells": cells,
    }


PROP_FACTORIES: dict[str, Callable[[NormalizedBlockRequest, MutationBatch], dict[str, Any]]] = {
    "list": _list_props,
    "code": _code_props,
    "latex": _latex_props,
    "table": _table_props,
    "bookmark": _bookmark_props,
    "image": _image_props,
    "attachment": _attachment_props,
}


# =============================================================================
# Builders
# =============================================================================


def _create_note(batch: MutationBatch, page_id: str) -> BlockNode:
    note = BlockNode(
        id=batch.new_id(),
        flavour=Flavour.NOTE,
        parent_id=page_id,
        props={
            "xywh": NOTE_XYWH,
            "index": key_between(None, None),
            "display_mode": NOTE_DISPLAY_MODE,
        },
    )
    batch.insert(note)
    logger.debug("Created note container %s under page %s", note.id, page_id)
    return note


def build_block(
    request: NormalizedBlockRequest,
    placement: ResolvedPlacement,
    batch: MutationBatch,
) -> BuildResult:
    """Create the node for a request at a resolved placement.

    Args:
        request: Normalized (and, if strict, validated) request.
        placement: Resolved against batch.table.
        batch: Batch receiving the note (if pending) and the new node.

    Returns:
        The created node and its final position.
    """
    parent_id = placement.parent_id
    index = placement.index
    note_id = None

    if placement.pending_note:
        note = _create_note(batch, placement.parent_id)
        parent_id = note.id
        index = 0
        note_id = note.id

    factory = PROP_FACTORIES.get(request.type)
    text = runs_from_value(request.text) if request.type in TEXT_TYPES else None
    node = BlockNode(
        id=batch.new_id(),
        flavour=TYPE_FLAVOURS[request.type],
        parent_id=parent_id,
        type=subtype_for(request),
        text=text,
        props=factory(request, batch) if factory else {},
    )
    batch.insert(node, index, strict=request.strict)

    logger.debug(
        "Built %s block %s under %s at %d", request.type, node.id, parent_id, index
    )
    return BuildResult(node=batch.table.get(node.id), parent_id=parent_id, index=index, note_id=note_id)


def create_document_roots(
    batch: MutationBatch,
    title: str | None = None,
    *,
    with_note: bool = True,
) -> dict[str, str]:
    """Create the page and surface roots (and a note) for an empty document.

    Returns:
        Mapping of "page", "surface" and (optionally) "note" to node ids.
    """
    page = BlockNode(id=batch.new_id(), flavour=Flavour.PAGE, props={"title": title or ""})
    batch.insert(page)
    surface = BlockNode(
        id=batch.new_id(),
        flavour=Flavour.SURFACE,
        parent_id=page.id,
        props={"elements": {}},
    )
    batch.insert(surface)

    ids = {"page": page.id, "surface": surface.id}
    if with_note:
        ids["note"] = _create_note(batch, page.id).id
    return ids
