"""Centralized configuration constants for blocktree.

This module provides a single source of truth for:
- Heading level bounds
- Table dimension bounds and defaults
- Default code language

Constants can be overridden via environment variables where noted.
Bounds that protect the tree shape have hard limits that cannot be bypassed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigurationError


# =============================================================================
# Helper functions
# =============================================================================


def _env_int(name: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    """Get integer from environment with optional bound enforcement."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        val = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}", setting=name, expected="integer"
        ) from None
    if min_val is not None and val < min_val:
        return min_val
    if max_val is not None and val > max_val:
        return max_val
    return val


# =============================================================================
# Block Limits
# =============================================================================


@dataclass(frozen=True)
class BlockLimits:
    """Bounds applied while normalizing and validating block requests."""

    MIN_HEADING_LEVEL: int = 1
    MAX_HEADING_LEVEL: int = 6

    # Table grid (rows x columns)
    MIN_TABLE_DIMENSION: int = 1
    MAX_TABLE_DIMENSION: int = _env_int("BLOCKTREE_MAX_TABLE_DIMENSION", 20, min_val=1, max_val=100)
    DEFAULT_TABLE_DIMENSION: int = 3

    DEFAULT_CODE_LANGUAGE: str = "txt"


LIMITS = BlockLimits()
