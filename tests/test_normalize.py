"""Tests for normalize.py - type normalization of block-creation requests.

Tests:
- Canonical types and legacy aliases
- Defaults and clamping
- Wire-form (camelCase) keys and placement
- Idempotency
"""

from __future__ import annotations

import pytest

from blocktree.blocks.normalize import (
    CANONICAL_TYPES,
    LEGACY_ALIASES,
    Placement,
    normalize_block_request,
)
from blocktree.config import LIMITS
from blocktree.errors import UnsupportedTypeError


# =============================================================================
# Type Resolution Tests
# =============================================================================


class TestTypeResolution:
    """Test canonical and legacy type resolution."""

    @pytest.mark.parametrize("block_type", CANONICAL_TYPES)
    def test_canonical_types_pass_through(self, block_type: str) -> None:
        request = normalize_block_request({"type": block_type})
        assert request.type == block_type
        assert request.legacy_type is None

    @pytest.mark.parametrize(
        "alias,canonical,field,value",
        [
            ("heading1", "heading", "level", 1),
            ("heading2", "heading", "level", 2),
            ("heading3", "heading", "level", 3),
            ("bulleted_list", "list", "style", "bulleted"),
            ("numbered_list", "list", "style", "numbered"),
            ("todo", "list", "style", "todo"),
        ],
    )
    def test_legacy_alias_implies_field(
        self, alias: str, canonical: str, field: str, value: object
    ) -> None:
        """Each legacy alias maps to one canonical type plus its implied field."""
        request = normalize_block_request({"type": alias})
        assert request.type == canonical
        assert request.legacy_type == alias
        assert getattr(request, field) == value

    def test_every_alias_is_covered(self) -> None:
        assert set(LEGACY_ALIASES) == {
            "heading1", "heading2", "heading3", "bulleted_list", "numbered_list", "todo",
        }

    def test_type_is_case_insensitive(self) -> None:
        assert normalize_block_request({"type": "HeAdInG"}).type == "heading"
        assert normalize_block_request({"type": "Heading2"}).legacy_type == "heading2"

    def test_unknown_type_lists_accepted_names(self) -> None:
        with pytest.raises(UnsupportedTypeError) as exc_info:
            normalize_block_request({"type": "spreadsheet"})
        message = str(exc_info.value)
        assert "spreadsheet" in message
        assert "paragraph" in message
        assert "heading1" in message
        assert exc_info.value.accepted == list(CANONICAL_TYPES)

    def test_missing_type_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedTypeError):
            normalize_block_request({"text": "orphan"})

    def test_explicit_level_overrides_alias(self) -> None:
        request = normalize_block_request({"type": "heading1", "level": 3})
        assert request.level == 3
        assert request.legacy_type == "heading1"


# =============================================================================
# Defaults and Clamping Tests
# =============================================================================


class TestDefaults:
    """Test defaulting and clamping of optional fields."""

    def test_heading_level_defaults_to_one(self) -> None:
        assert normalize_block_request({"type": "heading"}).level == 1

    @pytest.mark.parametrize("raw,expected", [(0, 1), (-3, 1), (9, 6), (4, 4), ("5", 5)])
    def test_heading_level_clamped(self, raw: object, expected: int) -> None:
        assert normalize_block_request({"type": "heading", "level": raw}).level == expected

    def test_list_style_defaults_to_bulleted(self) -> None:
        assert normalize_block_request({"type": "list"}).style == "bulleted"

    def test_unknown_list_style_falls_back(self) -> None:
        assert normalize_block_request({"type": "list", "style": "zigzag"}).style == "bulleted"

    def test_bookmark_style_defaults_to_horizontal(self) -> None:
        assert normalize_block_request({"type": "bookmark"}).bookmark_style == "horizontal"

    def test_code_language_default_and_lowercase(self) -> None:
        assert normalize_block_request({"type": "code"}).language == "txt"
        assert normalize_block_request({"type": "code", "language": " Python "}).language == "python"

    def test_table_dimensions_default(self) -> None:
        request = normalize_block_request({"type": "table"})
        assert (request.rows, request.columns) == (3, 3)

    def test_table_dimensions_clamped(self) -> None:
        request = normalize_block_request({"type": "table", "rows": 500, "columns": 0})
        assert request.rows == LIMITS.MAX_TABLE_DIMENSION
        assert request.columns == 1

    def test_non_integer_dimension_uses_default(self) -> None:
        request = normalize_block_request({"type": "table", "rows": "many"})
        assert request.rows == LIMITS.DEFAULT_TABLE_DIMENSION

    def test_strict_defaults_to_policy(self) -> None:
        assert normalize_block_request({"type": "paragraph"}).strict is True
        assert normalize_block_request({"type": "paragraph"}, default_strict=False).strict is False
        assert normalize_block_request({"type": "paragraph", "strict": False}).strict is False


# =============================================================================
# Wire Form Tests
# =============================================================================


class TestWireForm:
    """Test camelCase keys and placement records."""

    def test_camel_case_fields(self) -> None:
        request = normalize_block_request({
            "type": "attachment",
            "sourceId": "blob-1",
            "mimeType": "application/pdf",
            "name": "report.pdf",
        })
        assert request.source_id == "blob-1"
        assert request.mime_type == "application/pdf"

    def test_snake_case_fields(self) -> None:
        request = normalize_block_request({"type": "image", "source_id": "blob-2"})
        assert request.source_id == "blob-2"

    def test_placement_parsed(self) -> None:
        request = normalize_block_request({
            "type": "paragraph",
            "placement": {"afterBlockId": "x1"},
        })
        assert request.placement == Placement(after_block_id="x1")

    def test_placement_defaults_empty(self) -> None:
        assert normalize_block_request({"type": "paragraph"}).placement.is_empty()

    def test_table_data_stringified(self) -> None:
        request = normalize_block_request({"type": "table", "tableData": [["a", 1], [None, "d"]]})
        assert request.table_data == [["a", "1"], ["", "d"]]


# =============================================================================
# Idempotency Tests
# =============================================================================


FULLY_SPECIFIED = [
    {"type": "paragraph", "text": "Hello"},
    {"type": "heading", "text": "Title", "level": 4},
    {"type": "quote", "text": "Quoted"},
    {"type": "list", "text": "Task", "style": "todo", "checked": True},
    {"type": "list", "text": "Item", "style": "numbered"},
    {"type": "code", "text": "x = 1", "language": "python", "caption": "example"},
    {"type": "divider"},
    {"type": "callout", "text": "Note this"},
    {"type": "latex", "latex": "e = mc^2"},
    {"type": "table", "rows": 2, "columns": 2, "tableData": [["A", "B"], ["C", "D"]]},
    {"type": "bookmark", "url": "https://example.com", "caption": "Ex", "bookmarkStyle": "vertical"},
    {"type": "image", "sourceId": "img-1", "caption": "Logo", "size": 2048},
    {
        "type": "attachment",
        "sourceId": "att-1",
        "name": "report.pdf",
        "mimeType": "application/pdf",
        "size": 10,
        "embed": True,
    },
    {"type": "paragraph", "text": "Placed", "placement": {"parentId": "n1", "index": 0}},
]


class TestIdempotency:
    """Normalizing an already-normalized request changes nothing."""

    @pytest.mark.parametrize("raw", FULLY_SPECIFIED, ids=lambda raw: raw["type"])
    def test_normalize_twice(self, raw: dict) -> None:
        first = normalize_block_request(raw)
        second = normalize_block_request(first.as_raw())
        assert second == first

    def test_legacy_alias_normalizes_to_canonical(self) -> None:
        first = normalize_block_request({"type": "heading2", "text": "Intro"})
        second = normalize_block_request(first.as_raw())
        assert second.type == "heading"
        assert second.level == 2
        assert second.text == "Intro"
