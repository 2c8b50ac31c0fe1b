"""Data models for the document block tree.

This module defines the node arena, the flavour enumerations and the
inline text runs that block text is made of.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Flavour(str, Enum):
    """Rendering/semantic kind of a block node."""

    # Structural roots and containers
    PAGE = "page"
    SURFACE = "surface"
    NOTE = "note"

    # Text blocks
    PARAGRAPH = "paragraph"
    LIST = "list"
    CODE = "code"
    CALLOUT = "callout"
    LATEX = "latex"

    # Structural leaves
    DIVIDER = "divider"
    TABLE = "table"

    # Media and links
    BOOKMARK = "bookmark"
    IMAGE = "image"
    ATTACHMENT = "attachment"

    # Embeds (read-only; encountered in fetched documents)
    EMBED_YOUTUBE = "embed-youtube"
    EMBED_GITHUB = "embed-github"
    EMBED_FIGMA = "embed-figma"
    EMBED_LOOM = "embed-loom"
    EMBED_IFRAME = "embed-iframe"


class ParagraphType(str, Enum):
    TEXT = "text"
    QUOTE = "quote"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"


class ListStyle(str, Enum):
    BULLETED = "bulleted"
    NUMBERED = "numbered"
    TODO = "todo"


class BookmarkStyle(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    LIST = "list"
    CUBE = "cube"
    CITATION = "citation"


# Roots created once per document, never by the builder for caller content
ROOT_FLAVOURS = frozenset({Flavour.PAGE, Flavour.SURFACE})

# Containers render as the concatenation of their children
CONTAINER_FLAVOURS = frozenset({Flavour.PAGE, Flavour.SURFACE, Flavour.NOTE})

# Flavours that may hold content children
NESTABLE_FLAVOURS = frozenset({
    Flavour.NOTE,
    Flavour.PARAGRAPH,
    Flavour.LIST,
    Flavour.CALLOUT,
})

EMBED_FLAVOURS = frozenset({
    Flavour.EMBED_YOUTUBE,
    Flavour.EMBED_GITHUB,
    Flavour.EMBED_FIGMA,
    Flavour.EMBED_LOOM,
    Flavour.EMBED_IFRAME,
})

# Allowed props per flavour. A prop outside this set must not appear on a node.
FLAVOUR_PROPS: dict[Flavour, frozenset[str]] = {
    Flavour.PAGE: frozenset({"title"}),
    Flavour.SURFACE: frozenset({"elements"}),
    Flavour.NOTE: frozenset({"xywh", "index", "display_mode"}),
    Flavour.PARAGRAPH: frozenset(),
    Flavour.LIST: frozenset({"checked"}),
    Flavour.CODE: frozenset({"language", "caption"}),
    Flavour.CALLOUT: frozenset(),
    Flavour.LATEX: frozenset({"latex"}),
    Flavour.DIVIDER: frozenset(),
    Flavour.TABLE: frozenset({"rows", "columns", "cells"}),
    Flavour.BOOKMARK: frozenset({"url", "caption", "style", "title", "description"}),
    Flavour.IMAGE: frozenset({"source_id", "caption", "size"}),
    Flavour.ATTACHMENT: frozenset({"source_id", "name", "mime_type", "size", "caption", "embed"}),
    **{flavour: frozenset({"url", "caption", "title", "description"}) for flavour in EMBED_FLAVOURS},
}


@dataclass
class TextRun:
    """A run of inline text sharing one set of formatting marks."""

    text: str
    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    code: bool = False
    link: str | None = None

    def attributes(self) -> dict[str, Any]:
        """Formatting marks that are set on this run."""
        attrs: dict[str, Any] = {}
        if self.bold:
            attrs["bold"] = True
        if self.italic:
            attrs["italic"] = True
        if self.strikethrough:
            attrs["strike"] = True
        if self.code:
            attrs["code"] = True
        if self.link:
            attrs["link"] = self.link
        return attrs

    def to_dict(self) -> dict[str, Any]:
        """Convert to delta form ({"insert", "attributes"})."""
        result: dict[str, Any] = {"insert": self.text}
        attrs = self.attributes()
        if attrs:
            result["attributes"] = attrs
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TextRun:
        """Create from a delta op or a flat run dict."""
        attrs = data.get("attributes") or data
        text = data.get("insert", data.get("text", ""))
        return cls(
            text=str(text),
            bold=bool(attrs.get("bold", False)),
            italic=bool(attrs.get("italic", False)),
            strikethrough=bool(attrs.get("strike", attrs.get("strikethrough", False))),
            code=bool(attrs.get("code", False)),
            link=attrs.get("link"),
        )


def runs_from_value(value: str | list[Any] | None) -> list[TextRun]:
    """Build text runs from a plain string or a list of run dicts."""
    if value is None:
        return []
    if isinstance(value, str):
        return [TextRun(value)] if value else []
    runs = []
    for item in value:
        if isinstance(item, TextRun):
            runs.append(item)
        elif isinstance(item, dict):
            runs.append(TextRun.from_dict(item))
        else:
            runs.append(TextRun(str(item)))
    return [run for run in runs if run.text]


def plain_text_of(value: str | list[Any] | None) -> str:
    """Concatenated text of a string or run list."""
    if isinstance(value, str):
        return value
    return "".join(run.text for run in runs_from_value(value))


@dataclass
class BlockNode:
    """A node in the document tree.

    Children are referenced by id; the NodeTable owns the nodes.
    Flavour-specific fields live in props (see FLAVOUR_PROPS).
    """

    id: str
    flavour: Flavour | str

    parent_id: str | None = None

    # Subtype: h1..h6/text/quote for paragraph, bulleted/numbered/todo for list
    type: str | None = None

    # None for structural flavours
    text: list[TextRun] | None = None

    children: list[str] = field(default_factory=list)
    props: dict[str, Any] = field(default_factory=dict)

    @property
    def flavour_value(self) -> str:
        return self.flavour.value if isinstance(self.flavour, Flavour) else str(self.flavour)

    def known_flavour(self) -> Flavour | None:
        """The flavour as an enum member, or None for unknown kinds."""
        if isinstance(self.flavour, Flavour):
            return self.flavour
        try:
            return Flavour(self.flavour)
        except ValueError:
            return None

    def plain_text(self) -> str:
        """Get concatenated plain text from all runs."""
        if not self.text:
            return ""
        return "".join(run.text for run in self.text)

    def is_container(self) -> bool:
        return self.known_flavour() in CONTAINER_FLAVOURS

    def is_nestable(self) -> bool:
        return self.known_flavour() in NESTABLE_FLAVOURS

    def table_data(self) -> list[list[str]] | None:
        """Cell text grid ordered by row/column order keys, or None."""
        if self.known_flavour() != Flavour.TABLE:
            return None
        rows = self.props.get("rows") or {}
        columns = self.props.get("columns") or {}
        cells = self.props.get("cells") or {}
        row_ids = sorted(rows, key=lambda rid: rows[rid].get("order", ""))
        column_ids = sorted(columns, key=lambda cid: columns[cid].get("order", ""))
        if not row_ids or not column_ids:
            return []
        return [
            [str((cells.get(f"{rid}:{cid}") or {}).get("text", "")) for cid in column_ids]
            for rid in row_ids
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "flavour": self.flavour_value,
            "parentId": self.parent_id,
            "type": self.type,
            "text": [run.to_dict() for run in self.text] if self.text is not None else None,
            "children": list(self.children),
            "props": copy.deepcopy(self.props),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlockNode:
        """Create from dictionary."""
        flavour: Flavour | str = data["flavour"]
        try:
            flavour = Flavour(flavour)
        except ValueError:
            pass

        text = data.get("text")
        return cls(
            id=data["id"],
            flavour=flavour,
            parent_id=data.get("parentId", data.get("parent_id")),
            type=data.get("type"),
            text=runs_from_value(text) if text is not None else None,
            children=list(data.get("children", [])),
            props=copy.deepcopy(data.get("props", {})),
        )


class NodeTable:
    """Arena of block nodes keyed by id.

    Iteration follows insertion order. Parent/child links are ids, so a
    table may hold dangling references or cycles when fed malformed data;
    readers must guard against both.
    """

    def __init__(self, nodes: list[BlockNode] | None = None) -> None:
        self._nodes: dict[str, BlockNode] = {}
        for node in nodes or []:
            self.add(node)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._nodes

    def __iter__(self) -> Iterator[BlockNode]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, block_id: str | None) -> BlockNode | None:
        if block_id is None:
            return None
        return self._nodes.get(block_id)

    def add(self, node: BlockNode) -> None:
        if node.id in self._nodes:
            raise ValueError(f"Duplicate block id: {node.id}")
        self._nodes[node.id] = node

    def ids(self) -> list[str]:
        return list(self._nodes)

    def page(self) -> BlockNode | None:
        """The page root, if the document has one."""
        for node in self._nodes.values():
            if node.known_flavour() == Flavour.PAGE:
                return node
        return None

    def find_note(self) -> BlockNode | None:
        """The first note under the page root, else any note in the table."""
        page = self.page()
        if page is not None:
            for child_id in page.children:
                child = self._nodes.get(child_id)
                if child is not None and child.known_flavour() == Flavour.NOTE:
                    return child
        for node in self._nodes.values():
            if node.known_flavour() == Flavour.NOTE:
                return node
        return None

    def copy(self) -> NodeTable:
        """Deep copy; mutations on the copy never reach this table."""
        return NodeTable([copy.deepcopy(node) for node in self._nodes.values()])

    def to_dict(self) -> dict[str, Any]:
        return {block_id: node.to_dict() for block_id, node in self._nodes.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NodeTable:
        return cls([BlockNode.from_dict(node) for node in data.values()])
