"""Block tree model and mutation pipeline.

normalize -> validate -> placement -> builder, over a NodeTable held in a
MutationBatch. reader flattens a table for reads.
"""

from __future__ import annotations

from .builder import BuildResult, build_block, create_document_roots
from .models import BlockNode, Flavour, ListStyle, NodeTable, ParagraphType, TextRun
from .mutation import Delta, InsertNode, MutationBatch, SpliceChildren
from .normalize import NormalizedBlockRequest, Placement, normalize_block_request
from .placement import ResolvedPlacement, resolve_placement
from .reader import TreeReadResult, read_tree
from .validate import validate_block_request

__all__ = [
    "BlockNode",
    "BuildResult",
    "Delta",
    "Flavour",
    "InsertNode",
    "ListStyle",
    "MutationBatch",
    "NodeTable",
    "NormalizedBlockRequest",
    "ParagraphType",
    "Placement",
    "ResolvedPlacement",
    "SpliceChildren",
    "TextRun",
    "TreeReadResult",
    "build_block",
    "create_document_roots",
    "normalize_block_request",
    "read_tree",
    "resolve_placement",
    "validate_block_request",
]
