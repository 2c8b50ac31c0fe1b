"""Tests for config.py environment overrides."""

from __future__ import annotations

import pytest

from blocktree.config import _env_int
from blocktree.errors import ConfigurationError


class TestEnvInt:
    """Integer settings read from the environment."""

    def test_default_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BLOCKTREE_TEST_INT", raising=False)
        assert _env_int("BLOCKTREE_TEST_INT", 7) == 7

    def test_value_read(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLOCKTREE_TEST_INT", "12")
        assert _env_int("BLOCKTREE_TEST_INT", 7) == 12

    @pytest.mark.parametrize("raw,expected", [("0", 1), ("500", 100)])
    def test_value_clamped(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
        monkeypatch.setenv("BLOCKTREE_TEST_INT", raw)
        assert _env_int("BLOCKTREE_TEST_INT", 7, min_val=1, max_val=100) == expected

    def test_non_integer_is_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLOCKTREE_TEST_INT", "lots")
        with pytest.raises(ConfigurationError) as exc_info:
            _env_int("BLOCKTREE_TEST_INT", 7)
        assert exc_info.value.to_dict()["setting"] == "BLOCKTREE_TEST_INT"
        assert "'lots'" in str(exc_info.value)
