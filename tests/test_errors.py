"""Tests for the blocktree error hierarchy."""

from __future__ import annotations

import pytest

from blocktree.errors import (
    ERROR_CODES,
    BlockTreeError,
    ConfigurationError,
    IndexOutOfRangeError,
    InvalidFieldError,
    InvalidParentError,
    MissingIdentifierError,
    PlacementError,
    ReferenceNotFoundError,
    StoreError,
    UnsupportedTypeError,
    ValidationError,
    get_error_code,
)


class TestErrorHierarchy:
    """Caller errors share ValidationError; placement errors share PlacementError."""

    @pytest.mark.parametrize(
        "error",
        [
            UnsupportedTypeError("x"),
            InvalidFieldError("url", "bookmark", "is required"),
            MissingIdentifierError("docId"),
            PlacementError("bad"),
            ReferenceNotFoundError("b1"),
            InvalidParentError("bad parent"),
            IndexOutOfRangeError(5, 2),
        ],
    )
    def test_caller_errors_are_validation_errors(self, error: BlockTreeError) -> None:
        assert isinstance(error, ValidationError)
        assert error.recoverable is False

    def test_placement_subclasses(self) -> None:
        for error in (ReferenceNotFoundError("b"), InvalidParentError("p"), IndexOutOfRangeError(1, 0)):
            assert isinstance(error, PlacementError)

    def test_store_error_is_not_validation(self) -> None:
        assert not isinstance(StoreError("down"), ValidationError)


class TestErrorMessages:
    """Messages and structured context."""

    def test_invalid_field_message(self) -> None:
        error = InvalidFieldError("text", "divider", "dividers cannot contain text")
        assert str(error) == "Invalid field 'text' for divider block: dividers cannot contain text"
        assert error.to_dict() == {
            "type": "invalidfield",
            "message": str(error),
            "recoverable": False,
            "block_type": "divider",
            "field": "text",
            "constraint": "dividers cannot contain text",
        }

    def test_unsupported_type_context(self) -> None:
        error = UnsupportedTypeError("widget", accepted=["paragraph"], legacy=["todo"])
        assert "widget" in str(error)
        data = error.to_dict()
        assert data["accepted"] == ["paragraph"]
        assert data["legacy"] == ["todo"]
        assert data["value"] == "widget"

    def test_index_out_of_range(self) -> None:
        error = IndexOutOfRangeError(5, 2, parent_id="n1")
        assert str(error) == "Index 5 is out of range; expected 0..2"
        assert error.to_dict()["block_id"] == "n1"
        assert error.to_dict()["child_count"] == 2

    def test_value_truncated(self) -> None:
        error = ValidationError("too long", field="text", value="x" * 500)
        assert error.to_dict()["value"] == "x" * 100 + "..."

    def test_store_error_omits_empty_context(self) -> None:
        assert StoreError("down", operation="fetch").to_dict() == {
            "type": "store",
            "message": "down",
            "recoverable": False,
            "operation": "fetch",
        }


class TestErrorCodes:
    """RPC error codes by most specific class."""

    @pytest.mark.parametrize(
        "error,code",
        [
            (ValidationError("v"), -32000),
            (UnsupportedTypeError("x"), -32001),
            (InvalidFieldError("f", "t", "r"), -32002),
            (MissingIdentifierError("docId"), -32003),
            (PlacementError("p"), -32010),
            (ReferenceNotFoundError("b"), -32011),
            (InvalidParentError("p"), -32012),
            (IndexOutOfRangeError(1, 0), -32013),
            (StoreError("s"), -32020),
            (ConfigurationError("c"), -32030),
            (BlockTreeError("base"), -32603),
        ],
    )
    def test_codes(self, error: BlockTreeError, code: int) -> None:
        assert get_error_code(error) == code

    def test_subclass_falls_back_to_parent_code(self) -> None:
        class CustomPlacementError(PlacementError):
            pass

        assert get_error_code(CustomPlacementError("x")) == -32010

    def test_codes_are_unique(self) -> None:
        assert len(set(ERROR_CODES.values())) == len(ERROR_CODES)
