"""Normalize block-creation requests.

Maps a caller-supplied type string (canonical or legacy alias) plus raw
fields into one consistent NormalizedBlockRequest. Normalization never
rejects field values; it coerces them so lenient callers always get a
buildable record. Strict rejection is the validator's job.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..config import LIMITS
from ..errors import UnsupportedTypeError
from .models import BookmarkStyle, ListStyle

logger = logging.getLogger(__name__)


CANONICAL_TYPES: tuple[str, ...] = (
    "paragraph",
    "heading",
    "quote",
    "list",
    "code",
    "divider",
    "callout",
    "latex",
    "table",
    "bookmark",
    "image",
    "attachment",
)

# Legacy alias -> (canonical type, implied fields)
LEGACY_ALIASES: dict[str, tuple[str, dict[str, Any]]] = {
    "heading1": ("heading", {"level": 1}),
    "heading2": ("heading", {"level": 2}),
    "heading3": ("heading", {"level": 3}),
    "bulleted_list": ("list", {"style": ListStyle.BULLETED.value}),
    "numbered_list": ("list", {"style": ListStyle.NUMBERED.value}),
    "todo": ("list", {"style": ListStyle.TODO.value}),
}

# Wire (camelCase) field names -> internal names
FIELD_ALIASES: dict[str, str] = {
    "sourceId": "source_id",
    "mimeType": "mime_type",
    "bookmarkStyle": "bookmark_style",
    "tableData": "table_data",
    "parentId": "parent_id",
    "afterBlockId": "after_block_id",
    "beforeBlockId": "before_block_id",
}

# Every field a block-creation request may carry
KNOWN_FIELDS = frozenset({
    "type",
    "text",
    "level",
    "style",
    "checked",
    "language",
    "caption",
    "url",
    "rows",
    "columns",
    "table_data",
    "latex",
    "source_id",
    "name",
    "mime_type",
    "size",
    "embed",
    "bookmark_style",
    "placement",
    "strict",
})

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def canonical_key(key: str) -> str:
    """Map a wire field name to its internal snake_case name."""
    if key in FIELD_ALIASES:
        return FIELD_ALIASES[key]
    return _CAMEL_RE.sub("_", key).lower()


def canonical_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of raw with snake_case keys."""
    return {canonical_key(key): value for key, value in raw.items()}


@dataclass(frozen=True)
class Placement:
    """Where a new block goes. All fields optional; see placement.py."""

    parent_id: str | None = None
    after_block_id: str | None = None
    before_block_id: str | None = None
    index: Any = None

    def is_empty(self) -> bool:
        return (
            self.parent_id is None
            and self.after_block_id is None
            and self.before_block_id is None
            and self.index is None
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.parent_id is not None:
            result["parentId"] = self.parent_id
        if self.after_block_id is not None:
            result["afterBlockId"] = self.after_block_id
        if self.before_block_id is not None:
            result["beforeBlockId"] = self.before_block_id
        if self.index is not None:
            result["index"] = self.index
        return result


@dataclass(frozen=True)
class NormalizedBlockRequest:
    """A block-creation request with every field resolved."""

    type: str
    legacy_type: str | None = None

    text: str | list[Any] | None = None
    level: int = 1
    style: str = ListStyle.BULLETED.value
    checked: bool = False
    language: str = LIMITS.DEFAULT_CODE_LANGUAGE
    caption: str | None = None

    url: str | None = None
    bookmark_style: str = BookmarkStyle.HORIZONTAL.value

    rows: int = LIMITS.DEFAULT_TABLE_DIMENSION
    columns: int = LIMITS.DEFAULT_TABLE_DIMENSION
    table_data: list[list[str]] | None = None

    latex: str | None = None

    source_id: str | None = None
    name: str | None = None
    mime_type: str | None = None
    size: int | None = None
    embed: bool = False

    placement: Placement = field(default_factory=Placement)
    strict: bool = True

    def as_raw(self) -> dict[str, Any]:
        """Render back to a raw request carrying only this type's fields."""
        raw: dict[str, Any] = {"type": self.type, "strict": self.strict}
        if self.text is not None and self.type not in ("divider",):
            raw["text"] = self.text
        if self.type == "heading":
            raw["level"] = self.level
        elif self.type == "list":
            raw["style"] = self.style
            if self.style == ListStyle.TODO.value:
                raw["checked"] = self.checked
        elif self.type == "code":
            raw["language"] = self.language
            if self.caption is not None:
                raw["caption"] = self.caption
        elif self.type == "bookmark":
            raw["url"] = self.url
            raw["bookmarkStyle"] = self.bookmark_style
            if self.caption is not None:
                raw["caption"] = self.caption
        elif self.type == "table":
            raw["rows"] = self.rows
            raw["columns"] = self.columns
            if self.table_data is not None:
                raw["tableData"] = [list(row) for row in self.table_data]
        elif self.type == "latex":
            raw["latex"] = self.latex
        elif self.type in ("image", "attachment"):
            raw["sourceId"] = self.source_id
            if self.caption is not None:
                raw["caption"] = self.caption
            if self.size is not None:
                raw["size"] = self.size
            if self.type == "attachment":
                raw["name"] = self.name
                raw["mimeType"] = self.mime_type
                raw["embed"] = self.embed
        placement = self.placement.to_dict()
        if placement:
            raw["placement"] = placement
        return raw


# =============================================================================
# Coercion helpers
# =============================================================================


def _as_int(value: Any) -> int | None:
    """Integer value of value, or None if it is not integral."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _enum_value(value: Any, enum_cls: type, default: str) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {member.value for member in enum_cls}:
            return lowered
    return default


def _normalize_placement(value: Any) -> Placement:
    if value is None:
        return Placement()
    if isinstance(value, Placement):
        return value
    if not isinstance(value, Mapping):
        return Placement()
    fields = canonical_fields(value)
    return Placement(
        parent_id=_as_str(fields.get("parent_id")) or None,
        after_block_id=_as_str(fields.get("after_block_id")) or None,
        before_block_id=_as_str(fields.get("before_block_id")) or None,
        index=fields.get("index"),
    )


def _normalize_table_data(value: Any) -> list[list[str]] | None:
    if not isinstance(value, list):
        return None
    grid = []
    for row in value:
        if isinstance(row, (list, tuple)):
            grid.append(["" if cell is None else str(cell) for cell in row])
    return grid


# =============================================================================
# Normalization
# =============================================================================


def resolve_type(block_type: Any) -> tuple[str, str | None, dict[str, Any]]:
    """Resolve a type string to (canonical type, legacy alias, implied fields).

    Raises:
        UnsupportedTypeError: If the type is neither canonical nor legacy.
    """
    key = block_type.strip().lower() if isinstance(block_type, str) else ""
    if key in CANONICAL_TYPES:
        return key, None, {}
    if key in LEGACY_ALIASES:
        canonical, implied = LEGACY_ALIASES[key]
        logger.debug("Legacy block type %s resolved to %s", key, canonical)
        return canonical, key, dict(implied)
    raise UnsupportedTypeError(
        str(block_type) if block_type is not None else "",
        accepted=list(CANONICAL_TYPES),
        legacy=list(LEGACY_ALIASES),
    )


def normalize_block_request(
    raw: Mapping[str, Any],
    *,
    default_strict: bool = True,
) -> NormalizedBlockRequest:
    """Normalize a raw block-creation request.

    Args:
        raw: Request fields, camelCase or snake_case keys.
        default_strict: Policy used when the request carries no strict flag.

    Returns:
        The normalized request.

    Raises:
        UnsupportedTypeError: If the type string is unknown.
    """
    fields = canonical_fields(raw)
    canonical, legacy, implied = resolve_type(fields.get("type"))

    level_value = fields.get("level")
    if level_value is None:
        level_value = implied.get("level")
    level = _as_int(level_value)
    level = _clamp(
        level if level is not None else LIMITS.MIN_HEADING_LEVEL,
        LIMITS.MIN_HEADING_LEVEL,
        LIMITS.MAX_HEADING_LEVEL,
    )

    style_value = fields.get("style")
    if style_value is None:
        style_value = implied.get("style")
    style = _enum_value(style_value, ListStyle, ListStyle.BULLETED.value)

    language = _as_str(fields.get("language"))
    language = language.strip().lower() if language and language.strip() else LIMITS.DEFAULT_CODE_LANGUAGE

    dims = []
    for name in ("rows", "columns"):
        dim = _as_int(fields.get(name))
        if dim is None:
            dim = LIMITS.DEFAULT_TABLE_DIMENSION
        dims.append(_clamp(dim, LIMITS.MIN_TABLE_DIMENSION, LIMITS.MAX_TABLE_DIMENSION))

    size = _as_int(fields.get("size"))

    text = fields.get("text")
    if text is not None and not isinstance(text, (str, list)):
        text = str(text)

    strict_value = fields.get("strict")
    strict = default_strict if strict_value is None else bool(strict_value)

    return NormalizedBlockRequest(
        type=canonical,
        legacy_type=legacy,
        text=text,
        level=level,
        style=style,
        checked=bool(fields.get("checked")) if fields.get("checked") is not None else False,
        language=language,
        caption=_as_str(fields.get("caption")),
        url=(_as_str(fields.get("url")) or "").strip() or None,
        bookmark_style=_enum_value(
            fields.get("bookmark_style"), BookmarkStyle, BookmarkStyle.HORIZONTAL.value
        ),
        rows=dims[0],
        columns=dims[1],
        table_data=_normalize_table_data(fields.get("table_data")),
        latex=_as_str(fields.get("latex")),
        source_id=_as_str(fields.get("source_id")),
        name=_as_str(fields.get("name")),
        mime_type=_as_str(fields.get("mime_type")),
        size=size,
        embed=bool(fields.get("embed", False)),
        placement=_normalize_placement(fields.get("placement")),
        strict=strict,
    )
