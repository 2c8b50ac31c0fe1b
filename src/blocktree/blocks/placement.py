"""Resolve where a new block goes.

A placement names at most one of: a parent (with an optional index), a
sibling to insert after, or a sibling to insert before. With no placement
the block is appended to the document's note container, which may not
exist yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import (
    IndexOutOfRangeError,
    InvalidFieldError,
    InvalidParentError,
    PlacementError,
    ReferenceNotFoundError,
)
from .models import ROOT_FLAVOURS, BlockNode, NodeTable
from .normalize import NormalizedBlockRequest
from .tree import is_reachable_from

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPlacement:
    """Exact insertion point for one new block.

    When pending_note is set the document has no note yet: parent_id names
    the page the note will be created under, and index addresses the new
    note's (empty) children.
    """

    parent_id: str
    siblings: tuple[str, ...]
    index: int
    pending_note: bool = False

    @property
    def after_id(self) -> str | None:
        """Left neighbour of the insertion point, if any."""
        if self.index <= 0 or self.index > len(self.siblings):
            return None
        return self.siblings[self.index - 1]


def _check_parent(
    parent: BlockNode,
    table: NodeTable,
    request: NormalizedBlockRequest,
) -> None:
    missing = [child_id for child_id in parent.children if child_id not in table]
    if missing:
        if request.strict:
            raise ReferenceNotFoundError(missing[0], field="children")
        logger.warning(
            "Parent %s lists %d missing children: %s",
            parent.id, len(missing), ", ".join(missing),
        )

    if not request.strict:
        return

    flavour = parent.known_flavour()
    if flavour in ROOT_FLAVOURS:
        raise InvalidParentError(
            f"Cannot insert a {request.type} block directly under the "
            f"{parent.flavour_value} root; target a note container instead",
            block_id=parent.id,
        )
    if not parent.is_nestable():
        raise InvalidParentError(
            f"Block {parent.id} ({parent.flavour_value}) cannot contain children",
            block_id=parent.id,
        )
    page = table.page()
    if page is not None and not is_reachable_from(table, parent.id, page.id):
        raise InvalidParentError(
            f"Block {parent.id} is not attached to the document page",
            block_id=parent.id,
        )


def _resolve_index(index: int | None, parent: BlockNode, strict: bool) -> int:
    count = len(parent.children)
    if index is None:
        return count
    if 0 <= index <= count:
        return index
    if strict:
        raise IndexOutOfRangeError(index, count, parent_id=parent.id)
    clamped = max(0, min(count, index))
    logger.debug("Index %d clamped to %d under %s", index, clamped, parent.id)
    return clamped


def resolve_placement(request: NormalizedBlockRequest, table: NodeTable) -> ResolvedPlacement:
    """Determine the parent and insertion index for a new block.

    Args:
        request: Normalized request; its placement and strict flag apply.
        table: Current node table (a snapshot or a batch working copy).

    Returns:
        The resolved placement.

    Raises:
        PlacementError: Conflicting placement fields.
        ReferenceNotFoundError: A referenced block does not exist.
        InvalidParentError: The target parent cannot take the block.
        IndexOutOfRangeError: Strict index outside [0, child count].
        InvalidFieldError: index is not an integer.
    """
    placement = request.placement
    index = placement.index
    if index is not None and (not isinstance(index, int) or isinstance(index, bool)):
        raise InvalidFieldError("index", request.type, "must be an integer")

    if placement.after_block_id and placement.before_block_id:
        raise PlacementError("afterBlockId and beforeBlockId are mutually exclusive")

    ref_id = placement.after_block_id or placement.before_block_id
    if ref_id is not None:
        ref_field = "afterBlockId" if placement.after_block_id else "beforeBlockId"
        if index is not None:
            raise PlacementError(f"index cannot be combined with {ref_field}", field="index")

        ref = table.get(ref_id)
        if ref is None:
            raise ReferenceNotFoundError(ref_id, field=ref_field)
        parent = table.get(ref.parent_id)
        if parent is None:
            raise InvalidParentError(f"Block {ref_id} has no parent", block_id=ref_id)
        if placement.parent_id is not None and placement.parent_id != parent.id:
            raise PlacementError(
                f"parentId {placement.parent_id} is not the parent of {ref_id}",
                field="parentId",
                block_id=ref_id,
            )
        _check_parent(parent, table, request)

        try:
            position = parent.children.index(ref_id)
        except ValueError:
            raise PlacementError(
                f"Block {ref_id} is not listed among its parent's children",
                block_id=ref_id,
            ) from None
        insert_at = position + 1 if placement.after_block_id else position
        logger.debug("Placing %s block at %s[%d] (%s %s)", request.type, parent.id, insert_at, ref_field, ref_id)
        return ResolvedPlacement(parent.id, tuple(parent.children), insert_at)

    if placement.parent_id is not None:
        parent = table.get(placement.parent_id)
        if parent is None:
            raise ReferenceNotFoundError(placement.parent_id, field="parentId")
        _check_parent(parent, table, request)
        insert_at = _resolve_index(index, parent, request.strict)
        logger.debug("Placing %s block at %s[%d]", request.type, parent.id, insert_at)
        return ResolvedPlacement(parent.id, tuple(parent.children), insert_at)

    note = table.find_note()
    if note is not None:
        _check_parent(note, table, request)
        insert_at = _resolve_index(index, note, request.strict)
        return ResolvedPlacement(note.id, tuple(note.children), insert_at)

    page = table.page()
    if page is None:
        raise InvalidParentError("Document has no page root to hold a note container")
    if index not in (None, 0):
        if request.strict:
            raise IndexOutOfRangeError(index, 0)
        logger.debug("Index %d clamped to 0 for new note", index)
    logger.debug("No note container under %s; one will be created", page.id)
    return ResolvedPlacement(page.id, (), 0, pending_note=True)
