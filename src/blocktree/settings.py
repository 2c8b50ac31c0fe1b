from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import _env_int


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_path(name: str) -> Path | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    """Static settings for the engine and its stdio server.

    Passed explicitly to the service layer; nothing reads the environment
    after construction.
    """

    # Used when a call omits workspaceId. None means callers must always pass one.
    default_workspace_id: str | None = os.environ.get("BLOCKTREE_WORKSPACE_ID") or None

    # Default validation policy for block creation requests.
    strict: bool = _env_bool("BLOCKTREE_STRICT", True)

    # Image blocks render as ![alt](<prefix><sourceId>) on export.
    blob_url_prefix: str = os.environ.get("BLOCKTREE_BLOB_URL_PREFIX", "blob://")

    log_level: str = os.environ.get("BLOCKTREE_LOG_LEVEL", "INFO")
    log_path: Path | None = _env_path("BLOCKTREE_LOG_PATH")
    log_max_bytes: int = _env_int("BLOCKTREE_LOG_MAX_BYTES", 1_000_000, min_val=0)
    log_backup_count: int = _env_int("BLOCKTREE_LOG_BACKUP_COUNT", 3, min_val=0)


settings = Settings()
