"""Document operations over a DocumentStore.

Every call fetches its own snapshot, works on a MutationBatch copy of it,
and submits one delta. Nothing is shared between calls except the store.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .blocks.builder import build_block, create_document_roots
from .blocks.models import NodeTable
from .blocks.mutation import MutationBatch
from .blocks.normalize import normalize_block_request
from .blocks.placement import resolve_placement
from .blocks.reader import block_row, read_tree
from .blocks.tree import get_ancestors, get_descendants
from .blocks.validate import validate_block_request
from .errors import MissingIdentifierError, ReferenceNotFoundError, StoreError
from .markdown.parser import parse_markdown
from .markdown.renderer import render_markdown
from .markdown.types import MarkdownParseResult, MarkdownRenderResult
from .settings import Settings, settings as default_settings
from .store import DocumentStore, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppendBlockResult:
    block_id: str
    flavour: str
    type: str | None
    normalized_type: str
    legacy_type: str | None = None
    appended: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "appended": self.appended,
            "blockId": self.block_id,
            "flavour": self.flavour,
            "type": self.type,
            "normalizedType": self.normalized_type,
            "legacyType": self.legacy_type,
        }


@dataclass
class ImportMarkdownResult:
    doc_id: str
    created: bool
    block_ids: list[str] = field(default_factory=list)
    parse: MarkdownParseResult = field(default_factory=MarkdownParseResult)

    def to_dict(self) -> dict[str, Any]:
        return {
            "docId": self.doc_id,
            "created": self.created,
            "blockIds": list(self.block_ids),
            **self.parse.to_dict(),
        }


def new_doc_id() -> str:
    return uuid.uuid4().hex[:16]


class DocumentService:
    """Append, read, export and import over one store."""

    def __init__(
        self,
        store: DocumentStore,
        settings: Settings | None = None,
        *,
        id_factory: Callable[[], str] | None = None,
        doc_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or default_settings
        self._id_factory = id_factory
        self._doc_id_factory = doc_id_factory or new_doc_id

    # -------------------------------------------------------------------------
    # Identifiers and snapshots
    # -------------------------------------------------------------------------

    def _workspace(self, workspace_id: str | None) -> str:
        resolved = workspace_id or self.settings.default_workspace_id
        if not resolved:
            raise MissingIdentifierError("workspaceId")
        return resolved

    @staticmethod
    def _doc(doc_id: str | None) -> str:
        if not doc_id:
            raise MissingIdentifierError("docId")
        return doc_id

    def _load(self, workspace_id: str, doc_id: str) -> Snapshot:
        snapshot = self.store.fetch_snapshot(workspace_id, doc_id)
        return snapshot if snapshot is not None else Snapshot()

    def _batch(self, snapshot: Snapshot) -> MutationBatch:
        return MutationBatch(
            snapshot.table,
            base_version=snapshot.version,
            id_factory=self._id_factory,
        )

    def _commit(self, workspace_id: str, doc_id: str, batch: MutationBatch) -> int | None:
        delta = batch.to_delta()
        if delta.is_empty():
            return None
        return self.store.submit_delta(workspace_id, doc_id, delta)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def append_block(
        self,
        workspace_id: str | None = None,
        doc_id: str | None = None,
        **fields: Any,
    ) -> AppendBlockResult:
        """Normalize, validate, place and build one block, then submit it.

        Raises:
            MissingIdentifierError: No workspace or document id.
            ValidationError: Any normalization, validation or placement failure.
        """
        workspace_id = self._workspace(workspace_id)
        doc_id = self._doc(doc_id)

        request = normalize_block_request(fields, default_strict=self.settings.strict)
        validate_block_request(request, fields)

        snapshot = self._load(workspace_id, doc_id)
        batch = self._batch(snapshot)
        if batch.table.page() is None:
            create_document_roots(batch, with_note=False)

        placement = resolve_placement(request, batch.table)
        result = build_block(request, placement, batch)
        version = self._commit(workspace_id, doc_id, batch)

        logger.info(
            "Appended %s block %s to %s/%s (version %s)",
            request.type, result.node.id, workspace_id, doc_id, version,
        )
        return AppendBlockResult(
            block_id=result.node.id,
            flavour=result.node.flavour_value,
            type=result.node.type,
            normalized_type=request.type,
            legacy_type=request.legacy_type,
        )

    def create_doc(
        self,
        workspace_id: str | None = None,
        title: str | None = None,
        *,
        doc_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a document with page, surface and note roots."""
        workspace_id = self._workspace(workspace_id)
        if doc_id and self.store.fetch_snapshot(workspace_id, doc_id) is not None:
            raise StoreError(
                f"Document already exists: {doc_id}",
                operation="create_doc",
                doc_id=doc_id,
            )
        doc_id = doc_id or self._doc_id_factory()

        batch = self._batch(Snapshot())
        ids = create_document_roots(batch, title)
        self._commit(workspace_id, doc_id, batch)

        logger.info("Created document %s/%s", workspace_id, doc_id)
        return {
            "docId": doc_id,
            "pageId": ids["page"],
            "surfaceId": ids["surface"],
            "noteId": ids["note"],
        }

    def import_markdown(
        self,
        workspace_id: str | None = None,
        doc_id: str | None = None,
        *,
        markdown: str,
        title: str | None = None,
    ) -> ImportMarkdownResult:
        """Parse Markdown and append every resulting block in one delta.

        Creates a new document when doc_id is omitted. Blocks are built
        leniently; lossy conversions are reported, never raised.
        """
        workspace_id = self._workspace(workspace_id)
        created = doc_id is None
        doc_id = doc_id or self._doc_id_factory()

        parsed = parse_markdown(markdown)
        snapshot = Snapshot() if created else self._load(workspace_id, doc_id)
        batch = self._batch(snapshot)
        if batch.table.page() is None:
            create_document_roots(batch, title)

        block_ids = []
        for operation in parsed.operations:
            request = normalize_block_request(operation.to_request())
            placement = resolve_placement(request, batch.table)
            block_ids.append(build_block(request, placement, batch).node.id)

        self._commit(workspace_id, doc_id, batch)
        logger.info(
            "Imported %d blocks into %s/%s (lossy=%s)",
            len(block_ids), workspace_id, doc_id, parsed.lossy,
        )
        return ImportMarkdownResult(doc_id=doc_id, created=created, block_ids=block_ids, parse=parsed)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def read_doc(self, workspace_id: str | None = None, doc_id: str | None = None) -> dict[str, Any]:
        """Flattened rows and plain text for a whole document."""
        workspace_id = self._workspace(workspace_id)
        doc_id = self._doc(doc_id)
        table = self._load(workspace_id, doc_id).table
        page = table.page()
        return {
            "docId": doc_id,
            "title": page.props.get("title") if page is not None else None,
            **read_tree(table).to_dict(),
        }

    def get_block(
        self,
        workspace_id: str | None = None,
        doc_id: str | None = None,
        *,
        block_id: str,
    ) -> dict[str, Any]:
        """One node with its ancestor chain and descendant rows."""
        workspace_id = self._workspace(workspace_id)
        doc_id = self._doc(doc_id)
        table = self._load(workspace_id, doc_id).table
        node = table.get(block_id)
        if node is None:
            raise ReferenceNotFoundError(block_id, field="blockId")
        return {
            "block": node.to_dict(),
            "ancestorIds": [ancestor.id for ancestor in get_ancestors(table, block_id)],
            "descendants": [block_row(child) for child in get_descendants(table, block_id)],
        }

    def export_markdown(
        self,
        workspace_id: str | None = None,
        doc_id: str | None = None,
    ) -> MarkdownRenderResult:
        """Render the page's children to Markdown."""
        workspace_id = self._workspace(workspace_id)
        doc_id = self._doc(doc_id)
        table = self._load(workspace_id, doc_id).table
        return render_markdown(
            table,
            _export_roots(table),
            blob_url_prefix=self.settings.blob_url_prefix,
        )


def _export_roots(table: NodeTable) -> list[str]:
    page = table.page()
    if page is not None:
        return list(page.children)
    return [node.id for node in table if node.parent_id is None]
