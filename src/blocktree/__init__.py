"""blocktree - block tree mutation and Markdown interchange engine."""

from __future__ import annotations

from .errors import BlockTreeError
from .service import AppendBlockResult, DocumentService, ImportMarkdownResult
from .store import DocumentStore, InMemoryDocumentStore, Snapshot

__version__ = "0.1.0"

__all__ = [
    "AppendBlockResult",
    "BlockTreeError",
    "DocumentService",
    "DocumentStore",
    "ImportMarkdownResult",
    "InMemoryDocumentStore",
    "Snapshot",
]
