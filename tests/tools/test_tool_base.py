"""Tests for the tool interface and compatibility scoring."""

from __future__ import annotations

from typing import Any

import pytest

from deep_research.domain.entities import ToolResult
from deep_research.domain.enums import QueryType
from deep_research.domain.values import QueryAnalysis
from deep_research.tools.base import (
    CompatibilityMetadata,
    FunctionTool,
    ToolDescriptor,
    compatibility_score,
)

COMPAT = CompatibilityMetadata(
    query_types={"technical": 0.9, "general_knowledge": 0.5},
    patterns=("how to", "error"),
    url_compatible=True,
    entity_types=("python",),
)


def _analysis(**kwargs: Any) -> QueryAnalysis:
    return QueryAnalysis(original_query="q", **kwargs)


class TestCompatibilityScore:
    def test_nothing_matches(self) -> None:
        assert compatibility_score(COMPAT, "weather today", _analysis()) == 0.0

    def test_pattern_only(self) -> None:
        score = compatibility_score(COMPAT, "How to parse JSON", _analysis())
        assert score == pytest.approx(0.3)

    def test_best_query_type_weight(self) -> None:
        analysis = _analysis(
            query_types=(QueryType.GENERAL_KNOWLEDGE, QueryType.TECHNICAL)
        )
        assert compatibility_score(COMPAT, "x", analysis) == pytest.approx(0.27)

    def test_entity_match_case_insensitive(self) -> None:
        score = compatibility_score(COMPAT, "x", _analysis(entities=("Python",)))
        assert score == pytest.approx(0.2)

    def test_url_bonus(self) -> None:
        score = compatibility_score(
            COMPAT, "x", _analysis(extracted_urls=("https://example.com",))
        )
        assert score == pytest.approx(0.2)

    def test_all_signals_clamped(self) -> None:
        analysis = _analysis(
            entities=("python",),
            query_types=(QueryType.TECHNICAL,),
            extracted_urls=("https://example.com",),
        )
        score = compatibility_score(COMPAT, "how to fix this error", analysis)
        assert 0.0 <= score <= 1.0
        assert score == pytest.approx(0.97)


class TestToolDescriptor:
    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            ToolDescriptor(id="", name="x")

    def test_summary_includes_score_and_compat(self) -> None:
        desc = ToolDescriptor(
            id="t", name="Tool", description="Does things", compatibility=COMPAT
        )
        text = desc.summary(0.42)
        assert "Tool: Tool (t)" in text
        assert "Score: 0.42" in text
        assert "technical (0.9)" in text
        assert "URL Compatible: Yes" in text


class TestFunctionTool:
    async def test_execute_delegates(self) -> None:
        async def func(params: dict[str, Any]) -> ToolResult:
            return ToolResult.ok({"title": params["query"]})

        tool = FunctionTool(ToolDescriptor(id="echo", name="Echo"), func)
        result = await tool.execute({"query": "hi"})
        assert result.data() == {"title": "hi"}
        assert tool.id == "echo"
        assert tool.name == "Echo"

    def test_custom_scorer_clamped(self) -> None:
        async def func(params: dict[str, Any]) -> ToolResult:
            return ToolResult.ok({})

        tool = FunctionTool(ToolDescriptor(id="t", name="T"), func, scorer=lambda q, a: 7)
        assert tool.relevance_score("q", _analysis()) == 1.0

    def test_default_scorer_uses_compatibility(self) -> None:
        async def func(params: dict[str, Any]) -> ToolResult:
            return ToolResult.ok({})

        tool = FunctionTool(ToolDescriptor(id="t", name="T", compatibility=COMPAT), func)
        assert tool.relevance_score("an error", _analysis()) == pytest.approx(0.3)
