"""Tests for ToolRegistry."""

from __future__ import annotations

import pytest

from deep_research.infrastructure.registry import ToolRegistry
from deep_research.testing import ScriptedTool


class TestToolRegistry:
    def test_declaration_order(self) -> None:
        registry = ToolRegistry([ScriptedTool("b"), ScriptedTool("a"), ScriptedTool("c")])
        assert registry.ids() == ["b", "a", "c"]
        assert [t.id for t in registry] == ["b", "a", "c"]
        assert len(registry) == 3

    def test_duplicate_rejected(self) -> None:
        registry = ToolRegistry([ScriptedTool("a")])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(ScriptedTool("a"))

    def test_overwrite_keeps_position(self) -> None:
        registry = ToolRegistry([ScriptedTool("a"), ScriptedTool("b")])
        replacement = ScriptedTool("a", score=0.9)
        registry.register(replacement, overwrite=True)
        assert registry.ids() == ["a", "b"]
        assert registry.get("a") is replacement

    def test_get_missing(self) -> None:
        registry = ToolRegistry()
        with pytest.raises(KeyError, match="not registered"):
            registry.get("nope")
        assert registry.get_or_none("nope") is None

    def test_unregister(self) -> None:
        tool = ScriptedTool("a")
        registry = ToolRegistry([tool])
        assert registry.unregister("a") is tool
        assert not registry.has("a")
        with pytest.raises(KeyError):
            registry.unregister("a")

    def test_contains(self) -> None:
        registry = ToolRegistry([ScriptedTool("a")])
        assert "a" in registry
        assert "b" not in registry
        assert 1 not in registry

    def test_repr_lists_ids(self) -> None:
        registry = ToolRegistry([ScriptedTool("a"), ScriptedTool("b")])
        assert repr(registry) == "<ToolRegistry [a, b]>"
