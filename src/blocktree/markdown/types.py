"""Result types for Markdown import and export."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class BlockOperation:
    """One block-creation operation produced by the Markdown importer.

    Text is a flat string; inline formatting stays as Markdown markup.
    """

    type: str
    text: str | None = None
    level: int | None = None
    style: str | None = None
    checked: bool | None = None
    language: str | None = None
    url: str | None = None
    caption: str | None = None
    rows: int | None = None
    columns: int | None = None
    table_data: list[list[str]] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire form; unset fields are omitted."""
        result: dict[str, Any] = {"type": self.type}
        for key, value in (
            ("text", self.text),
            ("level", self.level),
            ("style", self.style),
            ("checked", self.checked),
            ("language", self.language),
            ("url", self.url),
            ("caption", self.caption),
            ("rows", self.rows),
            ("columns", self.columns),
            ("tableData", self.table_data),
        ):
            if value is not None:
                result[key] = value
        return result

    def to_request(self) -> dict[str, Any]:
        """Raw block-creation request for the lenient build path."""
        request = self.to_dict()
        request["strict"] = False
        return request


@dataclass
class MarkdownParseResult:
    operations: list[BlockOperation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    input_chars: int = 0
    unsupported_count: int = 0

    @property
    def lossy(self) -> bool:
        return self.unsupported_count > 0 or bool(self.warnings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operations": [op.to_dict() for op in self.operations],
            "warnings": list(self.warnings),
            "lossy": self.lossy,
            "stats": {
                "inputChars": self.input_chars,
                "blockCount": len(self.operations),
                "unsupportedCount": self.unsupported_count,
            },
        }


@dataclass
class MarkdownRenderResult:
    markdown: str = ""
    warnings: list[str] = field(default_factory=list)
    block_count: int = 0
    unsupported_count: int = 0

    @property
    def lossy(self) -> bool:
        return self.unsupported_count > 0 or bool(self.warnings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "markdown": self.markdown,
            "warnings": list(self.warnings),
            "lossy": self.lossy,
            "stats": {
                "blockCount": self.block_count,
                "unsupportedCount": self.unsupported_count,
            },
        }


class WarningLog:
    """De-duplicated warning list with an event counter."""

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self._seen: set[str] = set()
        self.unsupported_count = 0

    def add(self, message: str, *, unsupported: bool = True) -> None:
        if unsupported:
            self.unsupported_count += 1
        if message not in self._seen:
            self._seen.add(message)
            self.warnings.append(message)
