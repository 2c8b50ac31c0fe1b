"""Per-type field legality checks for block-creation requests.

Only enforced for strict requests. The raw request is inspected (not the
normalized one) so values the normalizer would have coerced are still
rejected. The first violation found is raised; errors are never aggregated.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

from ..config import LIMITS
from ..errors import InvalidFieldError
from .models import BookmarkStyle, ListStyle, plain_text_of
from .normalize import KNOWN_FIELDS, NormalizedBlockRequest, Placement, canonical_fields

logger = logging.getLogger(__name__)


# Fields every request may carry regardless of type
COMMON_FIELDS = frozenset({"type", "strict", "placement"})

# Fields each canonical type accepts in strict mode
TYPE_FIELDS: dict[str, frozenset[str]] = {
    "paragraph": frozenset({"text"}),
    "heading": frozenset({"text", "level"}),
    "quote": frozenset({"text"}),
    "list": frozenset({"text", "style", "checked"}),
    "code": frozenset({"text", "language", "caption"}),
    "divider": frozenset({"text"}),
    "callout": frozenset({"text"}),
    "latex": frozenset({"latex"}),
    "table": frozenset({"rows", "columns", "table_data"}),
    "bookmark": frozenset({"url", "caption", "bookmark_style"}),
    "image": frozenset({"source_id", "caption", "size"}),
    "attachment": frozenset({"source_id", "name", "mime_type", "size", "caption", "embed"}),
}

CAPTION_TYPES = frozenset({"code", "bookmark", "image", "attachment"})


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_url(value: str) -> bool:
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def validate_block_request(request: NormalizedBlockRequest, raw: Mapping[str, Any]) -> None:
    """Reject illegal field combinations for strict requests.

    Args:
        request: The normalized request (supplies type and strict flag).
        raw: The caller's original fields.

    Raises:
        InvalidFieldError: On the first violation found.
    """
    if not request.strict:
        return

    block_type = request.type
    fields = canonical_fields(raw)

    for name in fields:
        if name not in KNOWN_FIELDS:
            raise InvalidFieldError(name, block_type, "unknown field")

    placement = fields.get("placement")
    if placement is not None and not isinstance(placement, (Mapping, Placement)):
        raise InvalidFieldError("placement", block_type, "must be an object")

    if "level" in fields:
        level = fields["level"]
        if block_type != "heading":
            raise InvalidFieldError("level", block_type, "only valid for heading blocks")
        if not _is_int(level) or not LIMITS.MIN_HEADING_LEVEL <= level <= LIMITS.MAX_HEADING_LEVEL:
            raise InvalidFieldError(
                "level",
                block_type,
                f"must be an integer between {LIMITS.MIN_HEADING_LEVEL} "
                f"and {LIMITS.MAX_HEADING_LEVEL}",
            )

    if "style" in fields:
        if block_type != "list":
            raise InvalidFieldError("style", block_type, "only valid for list blocks")
        if fields["style"] not in {style.value for style in ListStyle}:
            raise InvalidFieldError(
                "style", block_type, f"must be one of {', '.join(s.value for s in ListStyle)}"
            )

    if "checked" in fields:
        if block_type != "list" or request.style != ListStyle.TODO.value:
            raise InvalidFieldError("checked", block_type, "only valid for todo list blocks")
        if not isinstance(fields["checked"], bool):
            raise InvalidFieldError("checked", block_type, "must be a boolean")

    if "language" in fields:
        if block_type != "code":
            raise InvalidFieldError("language", block_type, "only valid for code blocks")
        if not isinstance(fields["language"], str):
            raise InvalidFieldError("language", block_type, "must be a string")

    if "caption" in fields and block_type not in CAPTION_TYPES:
        raise InvalidFieldError(
            "caption", block_type, "only valid for code, bookmark, image and attachment blocks"
        )

    if "text" in fields and fields["text"] is not None and not isinstance(fields["text"], (str, list)):
        raise InvalidFieldError("text", block_type, "must be a string or a list of text runs")

    if block_type == "divider" and plain_text_of(fields.get("text")).strip():
        raise InvalidFieldError("text", block_type, "dividers cannot contain text")

    if block_type == "bookmark":
        url = fields.get("url")
        if not _non_empty_str(url):
            raise InvalidFieldError("url", block_type, "is required")
        if not _is_url(url):
            raise InvalidFieldError("url", block_type, f"is not a valid URL: {url}")

    if "bookmark_style" in fields:
        if block_type != "bookmark":
            raise InvalidFieldError("bookmarkStyle", block_type, "only valid for bookmark blocks")
        if fields["bookmark_style"] not in {style.value for style in BookmarkStyle}:
            raise InvalidFieldError(
                "bookmarkStyle",
                block_type,
                f"must be one of {', '.join(s.value for s in BookmarkStyle)}",
            )

    if block_type in ("image", "attachment") and not _non_empty_str(fields.get("source_id")):
        raise InvalidFieldError("sourceId", block_type, "is required")

    if block_type == "attachment":
        if not _non_empty_str(fields.get("name")):
            raise InvalidFieldError("name", block_type, "is required")
        if not _non_empty_str(fields.get("mime_type")):
            raise InvalidFieldError("mimeType", block_type, "is required")

    if "size" in fields and (not _is_int(fields["size"]) or fields["size"] < 0):
        raise InvalidFieldError("size", block_type, "must be a non-negative integer")

    if "embed" in fields and not isinstance(fields["embed"], bool):
        raise InvalidFieldError("embed", block_type, "must be a boolean")

    if block_type == "latex" and not _non_empty_str(fields.get("latex")):
        raise InvalidFieldError("latex", block_type, "is required")

    if block_type == "table":
        for name in ("rows", "columns"):
            if name not in fields:
                continue
            value = fields[name]
            if (
                not _is_int(value)
                or not LIMITS.MIN_TABLE_DIMENSION <= value <= LIMITS.MAX_TABLE_DIMENSION
            ):
                raise InvalidFieldError(
                    name,
                    block_type,
                    f"must be an integer between {LIMITS.MIN_TABLE_DIMENSION} "
                    f"and {LIMITS.MAX_TABLE_DIMENSION}",
                )
        table_data = fields.get("table_data")
        if table_data is not None and (
            not isinstance(table_data, list)
            or not all(isinstance(row, (list, tuple)) for row in table_data)
        ):
            raise InvalidFieldError("tableData", block_type, "must be a list of rows")

    allowed = TYPE_FIELDS[block_type] | COMMON_FIELDS
    for name in fields:
        if name not in allowed:
            raise InvalidFieldError(name, block_type, f"not supported for {block_type} blocks")

    logger.debug("Strict validation passed for %s block", block_type)
