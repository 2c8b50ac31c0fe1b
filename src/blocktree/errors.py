"""blocktree error hierarchy.

Provides a structured error hierarchy for block tree operations:
- BlockTreeError: Base exception for all engine errors
- ValidationError: Caller input failed validation
- UnsupportedTypeError: Unknown block type string
- InvalidFieldError: Field illegal or malformed for the block type
- MissingIdentifierError: Workspace or document id omitted
- PlacementError: Placement could not be resolved
- StoreError: Document store rejected or could not serve a request
- ConfigurationError: Configuration/setup issues

Each error type includes:
- Descriptive message
- Structured context for RPC responses
- Recoverable flag (caller errors are never recoverable)

Usage:
    from blocktree.errors import InvalidFieldError

    if not url:
        raise InvalidFieldError("url", "bookmark", "is required")
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Error Base Classes
# =============================================================================


class BlockTreeError(Exception):
    """Base exception for all blocktree errors.

    Attributes:
        message: Human-readable error description
        recoverable: Whether the operation can be retried
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured dictionary for RPC responses."""
        return {
            "type": type(self).__name__.lower().replace("error", ""),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(BlockTreeError):
    """Caller input failed validation.

    Example:
        raise ValidationError("Level out of range", field="level", constraint="1-6")
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if constraint:
            context["constraint"] = constraint
        if value is not None:
            context["value"] = _truncate(str(value), 100)
        super().__init__(message, recoverable=False, context=context)
        self.field = field
        self.constraint = constraint


class UnsupportedTypeError(ValidationError):
    """Block type string is neither canonical nor a legacy alias."""

    def __init__(
        self,
        block_type: str,
        *,
        accepted: list[str] | None = None,
        legacy: list[str] | None = None,
    ) -> None:
        accepted = accepted or []
        legacy = legacy or []
        message = (
            f"Unsupported block type '{block_type}'. "
            f"Accepted types: {', '.join(accepted)}. "
            f"Legacy aliases: {', '.join(legacy)}."
        )
        super().__init__(
            message,
            field="type",
            value=block_type,
            context={"accepted": accepted, "legacy": legacy},
        )
        self.block_type = block_type
        self.accepted = accepted
        self.legacy = legacy


class InvalidFieldError(ValidationError):
    """A field is illegal or malformed for the block type."""

    def __init__(self, field: str, type_context: str, reason: str) -> None:
        super().__init__(
            f"Invalid field '{field}' for {type_context} block: {reason}",
            field=field,
            constraint=reason,
            context={"block_type": type_context},
        )
        self.type_context = type_context
        self.reason = reason


class MissingIdentifierError(ValidationError):
    """Caller omitted a workspace or document id."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"{identifier} is required", field=identifier)


class PlacementError(ValidationError):
    """Placement could not be resolved against the current tree."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = "placement",
        block_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if block_id:
            context["block_id"] = block_id
        super().__init__(message, field=field, context=context, **kwargs)
        self.block_id = block_id


class ReferenceNotFoundError(PlacementError):
    """A block referenced by the placement does not exist."""

    def __init__(self, block_id: str, *, field: str = "placement") -> None:
        super().__init__(f"Block not found: {block_id}", field=field, block_id=block_id)


class InvalidParentError(PlacementError):
    """The target parent cannot hold the new block."""


class IndexOutOfRangeError(PlacementError):
    """Insertion index outside [0, child count]."""

    def __init__(self, index: int, child_count: int, *, parent_id: str | None = None) -> None:
        super().__init__(
            f"Index {index} is out of range; expected 0..{child_count}",
            field="index",
            block_id=parent_id,
            context={"child_count": child_count},
        )
        self.index = index
        self.child_count = child_count


# =============================================================================
# Store and Configuration Errors
# =============================================================================


class StoreError(BlockTreeError):
    """Document store failure (fetch or submit)."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        doc_id: str | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(
            message,
            recoverable=recoverable,
            context={"operation": operation, "doc_id": doc_id},
        )


class ConfigurationError(BlockTreeError):
    """Configuration or setup issue."""

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        expected: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"setting": setting, "expected": expected},
        )


# =============================================================================
# RPC Error Code Mapping
# =============================================================================


ERROR_CODES: dict[type[BlockTreeError], int] = {
    ValidationError: -32000,
    UnsupportedTypeError: -32001,
    InvalidFieldError: -32002,
    MissingIdentifierError: -32003,
    PlacementError: -32010,
    ReferenceNotFoundError: -32011,
    InvalidParentError: -32012,
    IndexOutOfRangeError: -32013,
    StoreError: -32020,
    ConfigurationError: -32030,
}


def get_error_code(exc: BlockTreeError) -> int:
    """Get the JSON-RPC error code for a domain error."""
    for error_type in type(exc).__mro__:
        if error_type in ERROR_CODES:
            return ERROR_CODES[error_type]
    return -32603


# =============================================================================
# Helpers
# =============================================================================


def _truncate(value: str | None, max_len: int) -> str | None:
    """Truncate a string value for safe logging."""
    if value is None:
        return None
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."
