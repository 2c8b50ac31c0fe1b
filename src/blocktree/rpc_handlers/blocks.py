"""Blocks RPC handlers - block tree and Markdown operations.

These handlers expose the DocumentService over JSON-RPC.
"""

from __future__ import annotations

import logging
from typing import Any

from blocktree.markdown.parser import parse_markdown
from blocktree.service import DocumentService

from ._base import require_params, rpc_handler

logger = logging.getLogger(__name__)


# =============================================================================
# Block Handlers
# =============================================================================


@rpc_handler("blocks/append")
def handle_blocks_append(
    service: DocumentService,
    *,
    workspace_id: str | None = None,
    doc_id: str | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Append one block to a document.

    Args:
        workspace_id: Workspace (falls back to the configured default)
        doc_id: Target document
        **fields: Block-creation request (type, text, placement, strict, ...)

    Returns:
        {appended, blockId, flavour, type, normalizedType, legacyType}
    """
    return service.append_block(workspace_id, doc_id, **fields).to_dict()


@require_params("block_id")
@rpc_handler("blocks/get")
def handle_blocks_get(
    service: DocumentService,
    *,
    block_id: str,
    workspace_id: str | None = None,
    doc_id: str | None = None,
) -> dict[str, Any]:
    """Get a block with its ancestor ids and descendant rows."""
    return service.get_block(workspace_id, doc_id, block_id=block_id)


# =============================================================================
# Document Handlers
# =============================================================================


@rpc_handler("docs/create")
def handle_docs_create(
    service: DocumentService,
    *,
    workspace_id: str | None = None,
    title: str | None = None,
    doc_id: str | None = None,
) -> dict[str, Any]:
    """Create an empty document (page, surface and note roots)."""
    return service.create_doc(workspace_id, title, doc_id=doc_id)


@rpc_handler("docs/read")
def handle_docs_read(
    service: DocumentService,
    *,
    workspace_id: str | None = None,
    doc_id: str | None = None,
) -> dict[str, Any]:
    """Read a document as flattened rows plus plain text."""
    return service.read_doc(workspace_id, doc_id)


# =============================================================================
# Markdown Handlers
# =============================================================================


@rpc_handler("docs/export_markdown")
def handle_docs_export_markdown(
    service: DocumentService,
    *,
    workspace_id: str | None = None,
    doc_id: str | None = None,
) -> dict[str, Any]:
    """Export a document as Markdown.

    Returns:
        {markdown, warnings, lossy, stats}
    """
    return service.export_markdown(workspace_id, doc_id).to_dict()


@require_params("markdown")
@rpc_handler("docs/import_markdown")
def handle_docs_import_markdown(
    service: DocumentService,
    *,
    markdown: str,
    workspace_id: str | None = None,
    doc_id: str | None = None,
    title: str | None = None,
) -> dict[str, Any]:
    """Import Markdown into a document (a new one when doc_id is omitted)."""
    if not isinstance(markdown, str):
        raise ValueError("markdown must be a string")
    result = service.import_markdown(workspace_id, doc_id, markdown=markdown, title=title)
    return result.to_dict()


@require_params("markdown")
@rpc_handler("markdown/parse")
def handle_markdown_parse(_service: DocumentService, *, markdown: str) -> dict[str, Any]:
    """Parse Markdown into block operations without touching any document."""
    if not isinstance(markdown, str):
        raise ValueError("markdown must be a string")
    return parse_markdown(markdown).to_dict()
