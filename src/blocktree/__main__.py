"""blocktree - block tree mutation and Markdown interchange engine.

Usage:
    python -m blocktree          Serve JSON-RPC 2.0 over stdio
    python -m blocktree --help   Show this help message

Environment Variables:
    BLOCKTREE_WORKSPACE_ID      Workspace used when a call omits workspaceId
    BLOCKTREE_STRICT            Default validation policy (default: true)
    BLOCKTREE_BLOB_URL_PREFIX   Image link prefix on export (default: blob://)
    BLOCKTREE_LOG_LEVEL         Logging level (default: INFO)
    BLOCKTREE_LOG_PATH          Optional rotating log file
"""

from __future__ import annotations

import argparse
from dataclasses import replace

from .logging_setup import configure_logging
from .rpc_server import run_stdio_server
from .settings import settings


def main() -> None:
    """Main entry point for the stdio server."""
    parser = argparse.ArgumentParser(
        prog="blocktree",
        description="Block tree mutation and Markdown interchange over JSON-RPC (stdio)",
    )
    parser.add_argument(
        "--workspace",
        default=settings.default_workspace_id,
        help="Default workspace id for calls that omit workspaceId",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Accept invalid field combinations unless a request sets strict",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0",
    )

    args = parser.parse_args()

    cfg = replace(
        settings,
        default_workspace_id=args.workspace,
        strict=settings.strict and not args.lenient,
        log_level=args.log_level,
    )
    configure_logging(cfg)
    run_stdio_server(cfg=cfg)


if __name__ == "__main__":
    main()
