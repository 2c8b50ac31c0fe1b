"""JSON-RPC 2.0 plumbing for the stdio server.

Error object, response envelopes and line-delimited stdin/stdout I/O.
Domain errors become RpcError through rpc_error_from().
"""

from __future__ import annotations

import json
import sys
from typing import Any

from .errors import BlockTreeError, get_error_code

JSON = dict[str, Any]

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class RpcError(Exception):
    """JSON-RPC error with code, message, and optional data."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> JSON:
        result: JSON = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result


def rpc_error_from(exc: BlockTreeError) -> RpcError:
    """Map a domain error to its RPC code, carrying its context as data."""
    return RpcError(code=get_error_code(exc), message=exc.message, data=exc.to_dict())


def jsonrpc_error(request_id: str | int | None, error: RpcError) -> JSON:
    return {"jsonrpc": "2.0", "id": request_id, "error": error.to_dict()}


def jsonrpc_result(request_id: str | int | None, result: Any) -> JSON:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def readline() -> str | None:
    """Next stripped line from stdin, or None at EOF."""
    try:
        line = sys.stdin.readline()
    except (OSError, ValueError):
        # stdin closed
        return None
    if not line:
        return None
    return line.strip()


def write(response: JSON) -> None:
    """Write one response line to stdout."""
    try:
        sys.stdout.write(json.dumps(response) + "\n")
        sys.stdout.flush()
    except BrokenPipeError:
        sys.exit(0)
