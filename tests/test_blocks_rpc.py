"""Tests for blocks RPC handlers and the stdio dispatcher.

Tests the JSON-RPC interface for block operations.
"""

from __future__ import annotations

import io
import json
from typing import Any

import pytest

from blocktree.rpc import RpcError
from blocktree.rpc_handlers._base import require_params, rpc_handler
from blocktree.rpc_handlers.blocks import (
    handle_blocks_append,
    handle_docs_import_markdown,
    handle_markdown_parse,
)
from blocktree.rpc_server import _handle_jsonrpc_request, run_stdio_server
from blocktree.service import DocumentService

from conftest import WORKSPACE


def call(service: DocumentService, method: str, params: Any = None, req_id: Any = 1) -> dict:
    request: dict[str, Any] = {"jsonrpc": "2.0", "id": req_id, "method": method}
    if params is not None:
        request["params"] = params
    return _handle_jsonrpc_request(service, request)


# =============================================================================
# Handler Tests
# =============================================================================


class TestBlocksHandlers:
    """Handlers called directly with snake_case keyword params."""

    def test_handle_blocks_append(self, service: DocumentService, created_doc: dict) -> None:
        """blocks/append returns the normalized result."""
        result = handle_blocks_append(
            service, workspace_id=WORKSPACE, doc_id="doc-main", type="todo", text="Task"
        )
        assert result["appended"] is True
        assert result["flavour"] == "list"
        assert result["type"] == "todo"
        assert result["legacyType"] == "todo"

    def test_invalid_field_maps_to_code(self, service: DocumentService, created_doc: dict) -> None:
        with pytest.raises(RpcError) as exc_info:
            handle_blocks_append(
                service, workspace_id=WORKSPACE, doc_id="doc-main", type="divider", text="x"
            )
        assert exc_info.value.code == -32002
        assert exc_info.value.data["field"] == "text"

    def test_markdown_must_be_string(self, service: DocumentService) -> None:
        with pytest.raises(RpcError) as exc_info:
            handle_markdown_parse(service, markdown=42)
        assert exc_info.value.code == -32602

    def test_import_requires_markdown(self, service: DocumentService) -> None:
        with pytest.raises(RpcError) as exc_info:
            handle_docs_import_markdown(service, workspace_id=WORKSPACE)
        assert exc_info.value.code == -32602
        assert exc_info.value.data == {"missing": ["markdown"]}

    def test_unexpected_exception_is_internal(self, service: DocumentService) -> None:
        @rpc_handler("test/boom")
        def boom(_service: DocumentService) -> None:
            raise RuntimeError("boom")

        with pytest.raises(RpcError) as exc_info:
            boom(service)
        assert exc_info.value.code == -32603
        assert exc_info.value.data == {"error_type": "RuntimeError"}

    def test_require_params_rejects_none(self, service: DocumentService) -> None:
        @require_params("name")
        def named(_service: DocumentService, *, name: str | None = None) -> str:
            return name

        with pytest.raises(RpcError):
            named(service, name=None)
        assert named(service, name="ok") == "ok"


# =============================================================================
# Dispatcher Tests
# =============================================================================


class TestDispatcher:
    """JSON-RPC request dispatch."""

    def test_ping(self, service: DocumentService) -> None:
        assert call(service, "ping") == {"jsonrpc": "2.0", "id": 1, "result": {"ok": True}}

    def test_notification_has_no_response(self, service: DocumentService) -> None:
        assert call(service, "ping", req_id=None) is None

    def test_unknown_method(self, service: DocumentService) -> None:
        response = call(service, "blocks/explode")
        assert response["error"]["code"] == -32601

    def test_method_must_be_string(self, service: DocumentService) -> None:
        response = _handle_jsonrpc_request(service, {"jsonrpc": "2.0", "id": 3})
        assert response["error"]["code"] == -32600
        assert response["id"] == 3

    def test_params_must_be_object(self, service: DocumentService) -> None:
        response = call(service, "docs/read", params=["doc-main"])
        assert response["error"]["code"] == -32602

    def test_camel_case_params(self, service: DocumentService, created_doc: dict) -> None:
        response = call(service, "blocks/append", {
            "workspaceId": WORKSPACE,
            "docId": "doc-main",
            "type": "heading2",
            "text": "Intro",
        })
        assert response["result"]["normalizedType"] == "heading"
        assert response["result"]["type"] == "h2"

    def test_placement_over_rpc(self, service: DocumentService, created_doc: dict) -> None:
        first = call(service, "blocks/append", {"docId": "doc-main", "type": "paragraph", "text": "A"})
        call(service, "blocks/append", {"docId": "doc-main", "type": "paragraph", "text": "C"})
        call(service, "blocks/append", {
            "docId": "doc-main",
            "type": "paragraph",
            "text": "B",
            "placement": {"afterBlockId": first["result"]["blockId"]},
        })
        read = call(service, "docs/read", {"docId": "doc-main"})
        assert read["result"]["plainText"] == "A\nB\nC"

    @pytest.mark.parametrize(
        "params,code",
        [
            ({"docId": "doc-main", "type": "widget"}, -32001),
            ({"docId": "doc-main", "type": "divider", "text": "x"}, -32002),
            ({"type": "paragraph"}, -32003),
            ({"docId": "doc-main", "type": "paragraph", "placement": {"afterBlockId": "ghost"}}, -32011),
            ({"docId": "doc-main", "type": "paragraph", "placement": {"parentId": "blk0001"}}, -32012),
            ({"docId": "doc-main", "type": "paragraph", "placement": {"index": 7}}, -32013),
            ({"docId": "doc-main", "type": "paragraph",
              "placement": {"afterBlockId": "blk0003", "beforeBlockId": "blk0003"}}, -32010),
        ],
    )
    def test_error_codes(
        self, service: DocumentService, created_doc: dict, params: dict, code: int
    ) -> None:
        response = call(service, "blocks/append", params)
        assert response["error"]["code"] == code

    def test_missing_block_id(self, service: DocumentService, created_doc: dict) -> None:
        response = call(service, "blocks/get", {"docId": "doc-main"})
        assert response["error"]["code"] == -32602

    def test_unexpected_param(self, service: DocumentService) -> None:
        response = call(service, "docs/read", {"docId": "d", "verbose": True})
        assert response["error"]["code"] == -32602

    def test_markdown_parse(self, service: DocumentService) -> None:
        response = call(service, "markdown/parse", {"markdown": "# Hi"})
        assert response["result"]["operations"] == [{"type": "heading", "text": "Hi", "level": 1}]
        assert response["result"]["lossy"] is False

    def test_import_then_export(self, service: DocumentService) -> None:
        imported = call(service, "docs/import_markdown", {"markdown": "# Hi\n\n- a\n- b"})
        doc_id = imported["result"]["docId"]
        assert imported["result"]["created"] is True

        exported = call(service, "docs/export_markdown", {"docId": doc_id})
        assert exported["result"]["markdown"] == "# Hi\n\n- a\n- b"

    def test_create_and_get(self, service: DocumentService) -> None:
        created = call(service, "docs/create", {"title": "T", "docId": "d9"})
        assert created["result"]["docId"] == "d9"
        got = call(service, "blocks/get", {"docId": "d9", "blockId": created["result"]["noteId"]})
        assert got["result"]["block"]["flavour"] == "note"

    def test_internal_error(self, service: DocumentService, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken(*args: Any, **kwargs: Any) -> None:
            raise RuntimeError("store down")

        monkeypatch.setattr(service.store, "fetch_snapshot", broken)
        response = call(service, "docs/read", {"docId": "d"})
        assert response["error"]["code"] == -32603


# =============================================================================
# Stdio Server Tests
# =============================================================================


class TestStdioServer:
    """Line-delimited JSON over stdin/stdout."""

    def test_serves_until_eof(
        self, service: DocumentService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        lines = [
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}),
            "not json",
            json.dumps([1, 2]),
            "",
            json.dumps({"jsonrpc": "2.0", "method": "ping"}),
            json.dumps({"jsonrpc": "2.0", "id": 2, "method": "markdown/parse",
                        "params": {"markdown": "text"}}),
        ]
        stdout = io.StringIO()
        monkeypatch.setattr("sys.stdin", io.StringIO("\n".join(lines) + "\n"))
        monkeypatch.setattr("sys.stdout", stdout)

        run_stdio_server(service)

        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [response.get("id") for response in responses] == [1, None, None, 2]
        assert responses[0]["result"] == {"ok": True}
        assert responses[1]["error"]["code"] == -32700
        assert responses[2]["error"]["code"] == -32600
        assert responses[3]["result"]["operations"] == [{"type": "paragraph", "text": "text"}]
