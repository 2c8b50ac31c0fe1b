"""Document store boundary.

The engine never owns persistence or sync. It fetches a materialized
snapshot, computes a delta against that snapshot's version, and submits
the delta. InMemoryDocumentStore is the reference implementation used
for embedding and tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from .blocks.models import NodeTable
from .blocks.mutation import Delta, apply_ops
from .errors import BlockTreeError, StoreError

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Materialized node table at a store version."""

    table: NodeTable = field(default_factory=NodeTable)
    version: int = 0


class DocumentStore(Protocol):
    def fetch_snapshot(self, workspace_id: str, doc_id: str) -> Snapshot | None:
        """Current snapshot, or None when the document has no content yet."""
        ...

    def submit_delta(self, workspace_id: str, doc_id: str, delta: Delta) -> int:
        """Apply a delta; returns the new document version."""
        ...


class InMemoryDocumentStore:
    """Keeps documents as node tables in a dict.

    Deltas are replayed on the current state even when their base version
    is stale; splices re-anchor on their left neighbour.
    """

    def __init__(self) -> None:
        self._docs: dict[tuple[str, str], Snapshot] = {}

    def fetch_snapshot(self, workspace_id: str, doc_id: str) -> Snapshot | None:
        snapshot = self._docs.get((workspace_id, doc_id))
        if snapshot is None or len(snapshot.table) == 0:
            return None
        return Snapshot(table=snapshot.table.copy(), version=snapshot.version)

    def submit_delta(self, workspace_id: str, doc_id: str, delta: Delta) -> int:
        """Apply delta atomically.

        A delta based on version 0 may create the document.

        Raises:
            StoreError: Unknown document, or ops that cannot be applied.
        """
        key = (workspace_id, doc_id)
        current = self._docs.get(key)
        if current is None:
            if delta.base_version != 0:
                raise StoreError(
                    f"Document not found: {doc_id}",
                    operation="submit_delta",
                    doc_id=doc_id,
                )
            current = Snapshot()

        if delta.base_version != current.version:
            logger.debug(
                "Replaying delta for %s from version %d onto version %d",
                doc_id, delta.base_version, current.version,
            )

        working = current.table.copy()
        try:
            apply_ops(working, delta.ops)
        except (BlockTreeError, ValueError) as exc:
            raise StoreError(
                f"Delta rejected for {doc_id}: {exc}",
                operation="submit_delta",
                doc_id=doc_id,
            ) from exc

        version = current.version + 1
        self._docs[key] = Snapshot(table=working, version=version)
        logger.debug("Document %s now at version %d (%d ops)", doc_id, version, len(delta.ops))
        return version

    def doc_ids(self, workspace_id: str) -> list[str]:
        return [doc_id for (ws, doc_id) in self._docs if ws == workspace_id]
