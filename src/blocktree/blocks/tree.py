"""Tree operations over a NodeTable.

Every walk here tolerates dangling ids and cycles in children/parent links;
those are data-quality conditions, not crashes.
"""

from __future__ import annotations

import logging

from .models import BlockNode, NodeTable

logger = logging.getLogger(__name__)


# =============================================================================
# Ancestor/Descendant Operations
# =============================================================================


def get_ancestors(table: NodeTable, block_id: str) -> list[BlockNode]:
    """Get all ancestors of a block, from immediate parent to root.

    Args:
        table: The node table.
        block_id: The block ID.

    Returns:
        List of ancestor nodes, starting with the immediate parent. Stops at
        the first missing parent or repeated id.
    """
    ancestors: list[BlockNode] = []
    seen = {block_id}
    node = table.get(block_id)

    while node is not None and node.parent_id is not None:
        if node.parent_id in seen:
            logger.warning("Parent cycle detected at block %s", node.parent_id)
            break
        parent = table.get(node.parent_id)
        if parent is None:
            break
        seen.add(parent.id)
        ancestors.append(parent)
        node = parent

    return ancestors


def get_descendants(table: NodeTable, block_id: str) -> list[BlockNode]:
    """Get all descendants of a block (depth-first, document order)."""
    result: list[BlockNode] = []
    _collect_descendants(table, block_id, result, {block_id})
    return result


def _collect_descendants(
    table: NodeTable,
    parent_id: str,
    result: list[BlockNode],
    seen: set[str],
) -> None:
    parent = table.get(parent_id)
    if parent is None:
        return
    for child_id in parent.children:
        if child_id in seen:
            continue
        child = table.get(child_id)
        if child is None:
            continue
        seen.add(child_id)
        result.append(child)
        _collect_descendants(table, child_id, result, seen)


def get_siblings(table: NodeTable, block_id: str, include_self: bool = False) -> list[BlockNode]:
    """Get siblings of a block in the parent's child order."""
    node = table.get(block_id)
    if node is None:
        return []
    parent = table.get(node.parent_id)
    if parent is None:
        return [node] if include_self else []

    siblings = [table.get(child_id) for child_id in parent.children]
    return [
        sibling for sibling in siblings
        if sibling is not None and (include_self or sibling.id != block_id)
    ]


# =============================================================================
# Tree Traversal Utilities
# =============================================================================


def get_block_depth(table: NodeTable, block_id: str) -> int:
    """Get the nesting depth of a block (0 for root blocks)."""
    return len(get_ancestors(table, block_id))


def get_root_block(table: NodeTable, block_id: str) -> BlockNode | None:
    """Get the root-level ancestor of a block, or the block itself."""
    ancestors = get_ancestors(table, block_id)
    if ancestors:
        return ancestors[-1]
    return table.get(block_id)


def is_reachable_from(table: NodeTable, block_id: str, root_id: str) -> bool:
    """Whether root_id is block_id itself or one of its ancestors."""
    if block_id == root_id:
        return block_id in table
    return any(ancestor.id == root_id for ancestor in get_ancestors(table, block_id))
