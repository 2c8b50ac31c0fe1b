"""Decorators shared by the RPC handler modules."""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable

from blocktree.errors import BlockTreeError
from blocktree.rpc import INTERNAL_ERROR, INVALID_PARAMS, RpcError, rpc_error_from

if TYPE_CHECKING:
    from blocktree.service import DocumentService

logger = logging.getLogger(__name__)


def rpc_handler(method_name: str) -> Callable:
    """Wrap a handler so every failure leaves it as an RpcError.

    BlockTreeError keeps its mapped code and context. ValueError and
    TypeError (bad or unexpected keyword params) become INVALID_PARAMS.
    Anything else is logged and reported as INTERNAL_ERROR.

    Usage:
        @rpc_handler("docs/read")
        def handle_docs_read(service: DocumentService, *, doc_id: str) -> dict:
            return service.read_doc(doc_id=doc_id)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(service: "DocumentService", **kwargs: Any) -> Any:
            try:
                return func(service, **kwargs)
            except RpcError:
                raise
            except BlockTreeError as e:
                logger.info("%s rejected: %s", method_name, e.message)
                raise rpc_error_from(e) from e
            except (ValueError, TypeError) as e:
                raise RpcError(code=INVALID_PARAMS, message=f"Invalid parameter: {e}") from e
            except Exception as e:
                logger.error("Internal error in RPC handler %s: %s", method_name, e, exc_info=True)
                raise RpcError(
                    code=INTERNAL_ERROR,
                    message=f"Internal error in {method_name}",
                    data={"error_type": type(e).__name__},
                ) from e

        return wrapper

    return decorator


def require_params(*required: str) -> Callable:
    """Reject calls where any of the named keyword params is absent or None."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            missing = [name for name in required if kwargs.get(name) is None]
            if missing:
                raise RpcError(
                    code=INVALID_PARAMS,
                    message=f"Missing required parameters: {', '.join(missing)}",
                    data={"missing": missing},
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator
