"""JSON-RPC 2.0 server over stdio.

One request per line on stdin, one response per line on stdout. Logs go
to stderr (see logging_setup).
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Callable

from .blocks.normalize import canonical_key
from .rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    RpcError,
    jsonrpc_error,
    jsonrpc_result,
    readline,
    write,
)
from .rpc_handlers.blocks import (
    handle_blocks_append,
    handle_blocks_get,
    handle_docs_create,
    handle_docs_export_markdown,
    handle_docs_import_markdown,
    handle_docs_read,
    handle_markdown_parse,
)
from .service import DocumentService
from .settings import Settings, settings as default_settings
from .store import InMemoryDocumentStore

logger = logging.getLogger(__name__)

_HANDLERS: dict[str, Callable[..., Any]] = {
    "blocks/append": handle_blocks_append,
    "blocks/get": handle_blocks_get,
    "docs/create": handle_docs_create,
    "docs/read": handle_docs_read,
    "docs/export_markdown": handle_docs_export_markdown,
    "docs/import_markdown": handle_docs_import_markdown,
    "markdown/parse": handle_markdown_parse,
}


def _handle_jsonrpc_request(service: DocumentService, req: dict[str, Any]) -> dict[str, Any] | None:
    method = req.get("method")
    req_id = req.get("id")
    params = req.get("params")

    correlation_id = uuid.uuid4().hex[:12]
    if method != "ping":
        logger.debug("RPC request [%s] method=%s req_id=%s", correlation_id, method, req_id)

    try:
        # Notifications can omit id; ignore.
        if req_id is None:
            return None

        if method == "ping":
            return jsonrpc_result(req_id, {"ok": True})

        if not isinstance(method, str):
            raise RpcError(code=INVALID_REQUEST, message="method must be a string")

        handler = _HANDLERS.get(method)
        if handler is None:
            raise RpcError(code=METHOD_NOT_FOUND, message=f"Method not found: {method}")

        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise RpcError(code=INVALID_PARAMS, message="params must be an object")

        kwargs = {canonical_key(key): value for key, value in params.items()}
        return jsonrpc_result(req_id, handler(service, **kwargs))

    except RpcError as exc:
        logger.warning(
            "RPC error [%s] method=%s code=%d: %s",
            correlation_id,
            method,
            exc.code,
            exc.message,
        )
        return jsonrpc_error(req_id, exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("RPC internal error [%s] method=%s: %s", correlation_id, method, exc)
        return jsonrpc_error(
            req_id,
            RpcError(
                code=INTERNAL_ERROR,
                message=f"Internal error in {method}",
                data={"correlation_id": correlation_id},
            ),
        )


def run_stdio_server(service: DocumentService | None = None, cfg: Settings | None = None) -> None:
    """Serve JSON-RPC requests from stdin until EOF."""
    cfg = cfg or default_settings
    service = service or DocumentService(InMemoryDocumentStore(), cfg)
    logger.info("blocktree JSON-RPC server listening on stdio")

    while True:
        line = readline()
        if line is None:
            return

        if not line:
            continue

        try:
            req = json.loads(line)
        except json.JSONDecodeError as exc:
            write(jsonrpc_error(None, RpcError(code=PARSE_ERROR, message=f"Parse error: {exc}")))
            continue

        if not isinstance(req, dict):
            write(jsonrpc_error(None, RpcError(code=INVALID_REQUEST, message="Request must be an object")))
            continue

        resp = _handle_jsonrpc_request(service, req)
        if resp is not None:
            write(resp)
