"""Mutation batches and the delta operations they emit.

A MutationBatch works on a private copy of a snapshot's node table. Every
insertion is applied to the copy and recorded as delta ops; the caller
submits the delta only if the whole batch succeeded, so an error anywhere
discards all of it.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from ..errors import InvalidFieldError, ReferenceNotFoundError
from .models import FLAVOUR_PROPS, BlockNode, NodeTable

logger = logging.getLogger(__name__)


def new_block_id() -> str:
    return uuid.uuid4().hex[:12]


# =============================================================================
# Delta Operations
# =============================================================================


@dataclass(frozen=True)
class InsertNode:
    """Add a node to the table. Its children arrive via later splices."""

    node: BlockNode

    def to_dict(self) -> dict[str, Any]:
        return {"op": "insert", "node": self.node.to_dict()}


@dataclass(frozen=True)
class SpliceChildren:
    """Insert ids into a parent's children.

    after_id is the left neighbour at computation time (None for the
    front); index is the position in the same state. Replaying against a
    newer state anchors on after_id when it is still present.
    """

    parent_id: str
    index: int
    ids: tuple[str, ...]
    after_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "splice",
            "parentId": self.parent_id,
            "index": self.index,
            "ids": list(self.ids),
            "afterId": self.after_id,
        }


DeltaOp = Union[InsertNode, SpliceChildren]


@dataclass
class Delta:
    """Incremental change relative to the snapshot at base_version."""

    base_version: int
    ops: list[DeltaOp] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.ops

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseVersion": self.base_version,
            "ops": [op.to_dict() for op in self.ops],
        }


def apply_ops(table: NodeTable, ops: list[DeltaOp]) -> None:
    """Apply delta ops to a table in place.

    Raises:
        ReferenceNotFoundError: A splice names a parent that does not exist.
        ValueError: An insert reuses an existing id.
    """
    for op in ops:
        if isinstance(op, InsertNode):
            table.add(copy.deepcopy(op.node))
            continue

        parent = table.get(op.parent_id)
        if parent is None:
            raise ReferenceNotFoundError(op.parent_id, field="parentId")
        if op.after_id is None:
            position = 0
        elif op.after_id in parent.children:
            position = parent.children.index(op.after_id) + 1
        else:
            position = min(op.index, len(parent.children))
        parent.children[position:position] = list(op.ids)


# =============================================================================
# Mutation Batch
# =============================================================================


class MutationBatch:
    """Collects node insertions against a working copy of a table."""

    def __init__(
        self,
        table: NodeTable,
        *,
        base_version: int = 0,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._table = table.copy()
        self.base_version = base_version
        self._id_factory = id_factory or new_block_id
        self._ops: list[DeltaOp] = []
        self.inserted_ids: list[str] = []
        self._issued: set[str] = set()

    @property
    def table(self) -> NodeTable:
        """The working table, including this batch's insertions."""
        return self._table

    def new_id(self) -> str:
        """Allocate an id not yet used in the working table or by this batch."""
        while True:
            block_id = self._id_factory()
            if block_id not in self._table and block_id not in self._issued:
                self._issued.add(block_id)
                return block_id
            logger.debug("Block id collision on %s; retrying", block_id)

    def insert(self, node: BlockNode, index: int | None = None, *, strict: bool = False) -> None:
        """Add node under node.parent_id at index (append when None).

        Root nodes (no parent) are added without a splice. Strict inserts
        reject props outside the flavour's FLAVOUR_PROPS.
        """
        if strict:
            flavour = getattr(node.flavour, "value", node.flavour)
            allowed = FLAVOUR_PROPS.get(flavour, frozenset())
            for name in node.props:
                if name not in allowed:
                    raise InvalidFieldError(name, flavour, f"not a property of {flavour} nodes")

        parent = None
        if node.parent_id is not None:
            parent = self._table.get(node.parent_id)
            if parent is None:
                raise ReferenceNotFoundError(node.parent_id, field="parentId")

        snapshot = copy.deepcopy(node)
        snapshot.children = []
        self._table.add(copy.deepcopy(snapshot))
        self._ops.append(InsertNode(snapshot))
        self.inserted_ids.append(node.id)

        if parent is None:
            return

        position = len(parent.children) if index is None else index
        after_id = parent.children[position - 1] if position > 0 else None
        parent.children.insert(position, node.id)
        self._ops.append(SpliceChildren(parent.id, position, (node.id,), after_id))

    def to_delta(self) -> Delta:
        return Delta(base_version=self.base_version, ops=list(self._ops))
