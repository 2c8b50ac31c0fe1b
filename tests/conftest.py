from __future__ import annotations

import itertools
from collections.abc import Callable

import pytest

from blocktree.blocks.models import BlockNode, Flavour, NodeTable, TextRun
from blocktree.service import DocumentService
from blocktree.settings import Settings
from blocktree.store import InMemoryDocumentStore

WORKSPACE = "ws-test"


def make_node(
    block_id: str,
    flavour: Flavour | str,
    parent_id: str | None = None,
    *,
    type: str | None = None,
    text: str | None = None,
    children: list[str] | None = None,
    **props,
) -> BlockNode:
    return BlockNode(
        id=block_id,
        flavour=flavour,
        parent_id=parent_id,
        type=type,
        text=[TextRun(text)] if text is not None else None,
        children=list(children or []),
        props=props,
    )


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic block ids: blk0001, blk0002, ..."""
    counter = itertools.count(1)
    return lambda: f"blk{next(counter):04d}"


@pytest.fixture
def seeded_table() -> NodeTable:
    """page -> [surface, note]; note -> [a, b, k] where k is a code block."""
    return NodeTable([
        make_node("page", Flavour.PAGE, children=["surface", "note"], title="Seed"),
        make_node("surface", Flavour.SURFACE, "page", elements={}),
        make_node("note", Flavour.NOTE, "page", children=["a", "b", "k"]),
        make_node("a", Flavour.PARAGRAPH, "note", type="text", text="Alpha"),
        make_node("b", Flavour.PARAGRAPH, "note", type="text", text="Beta"),
        make_node("k", Flavour.CODE, "note", text="print(1)", language="python"),
    ])


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(default_workspace_id=WORKSPACE, strict=True, blob_url_prefix="blob://")


@pytest.fixture
def service(
    store: InMemoryDocumentStore,
    test_settings: Settings,
    id_factory: Callable[[], str],
) -> DocumentService:
    doc_ids = itertools.count(1)
    return DocumentService(
        store,
        test_settings,
        id_factory=id_factory,
        doc_id_factory=lambda: f"doc{next(doc_ids):03d}",
    )


@pytest.fixture
def created_doc(service: DocumentService) -> dict:
    """A document with page, surface and note roots."""
    return service.create_doc(WORKSPACE, "Test Doc", doc_id="doc-main")
