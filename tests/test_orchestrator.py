"""End-to-end tests of the research loop through ResearchOrchestrator."""

from __future__ import annotations

import time
from typing import Any

import pytest

from deep_research import ResearchConfig, ResearchOrchestrator, research
from deep_research.domain.entities import ResearchResult, ToolResult
from deep_research.infrastructure.cache import InMemoryResultCache
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.testing import FailingTool, MockResearchChatModel, ScriptedTool, StaticTool

QUERY = "What is the capital of France?"


def _always_gap_model() -> MockResearchChatModel:
    return MockResearchChatModel(
        structured_responses={
            "QueryAnalysisOutput": [{"intent": "search"}],
            "RelevanceOutput": [{"relevant_indices": [0]}],
            "GapAnalysisOutput": [{"has_gaps": True, "follow_up_query": "more detail"}],
        },
        text_responses=["Summary [1]."],
    )


def _two_tools() -> ToolRegistry:
    return ToolRegistry(
        [
            StaticTool("tool_a", {"title": "A", "url": "https://example.com/a"}, score=0.9),
            StaticTool("tool_b", {"title": "B", "url": "https://example.com/b"}, score=0.5),
        ]
    )


class ClockAdvancingTool(ScriptedTool):
    """Moves a fake clock forward while it runs."""

    def __init__(self, tool_id: str, clock: Any, step: float) -> None:
        super().__init__(tool_id, score=0.9)
        self.clock = clock
        self.step = step

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        self.calls.append(dict(params))
        self.clock.now += self.step
        return ToolResult.ok({"title": "slow", "url": f"https://example.com/{self.id}"})


class BrokenGraph:
    async def ainvoke(self, *args: Any, **kwargs: Any) -> Any:
        raise RuntimeError("graph exploded")


# ===================================================================== #
#  Scenarios                                                             #
# ===================================================================== #


class TestScenarios:
    async def test_single_tool_single_round(self, paris_registry, paris_tool, config, sleep) -> None:
        model = MockResearchChatModel(
            structured_responses={
                "QueryAnalysisOutput": [
                    {"intent": "explain", "entities": ["France"], "query_types": ["general_knowledge"]}
                ],
                "ToolSelectionOutput": [
                    {"selected_tools": ["paris_search"], "reasoning": ["covers capitals"]}
                ],
                "QueryOptimizationOutput": [
                    {"optimizations": [{"tool_id": "paris_search", "query": "capital of France"}]}
                ],
                "RelevanceOutput": [{"relevant_indices": [0]}],
            },
            text_responses=["Paris is the capital of France [1]."],
        )
        orchestrator = ResearchOrchestrator(model, paris_registry, config, sleep=sleep)

        result = await orchestrator.research(QUERY, depth=1)

        assert isinstance(result, ResearchResult)
        assert [s.id for s in result.sources] == [1]
        assert result.sources[0].url == "https://example.com/paris"
        assert result.sources[0].tool == "Paris Search"
        assert result.answer == "Paris is the capital of France [1]."
        assert result.confidence > 0
        assert result.metadata["iterations"] == 1
        assert result.metadata["stop_reason"] == "max_depth"
        assert result.metadata["tools_used"] == ["paris_search"]
        assert result.metadata["query_types"] == ["general_knowledge"]
        assert result.metadata["total_results"] == 1
        assert result.metadata["tool_selection_reasoning"][0]["reasoning"] == ["covers capitals"]
        assert paris_tool.calls == [{"query": "capital of France"}]
        assert model.count("GapAnalysisOutput") == 0

    @pytest.mark.parametrize("raises", [True, False])
    async def test_all_tools_fail(self, config, sleep, raises: bool) -> None:
        registry = ToolRegistry(
            [
                FailingTool("tool_a", error="timeout", raises=raises),
                FailingTool("tool_b", error="timeout", raises=raises),
            ]
        )
        model = MockResearchChatModel(fail_all=True)
        orchestrator = ResearchOrchestrator(model, registry, config, sleep=sleep)

        result = await orchestrator.research(QUERY, depth=2)

        assert result.sources == []
        assert result.confidence == 0.0
        assert "No relevant results were found" in result.answer
        summaries = result.metadata["tool_results"]
        assert [s["success"] for s in summaries] == [False, False]
        assert all(s["error"] == "timeout" for s in summaries)
        expected_attempts = config.max_retries + 1 if raises else 1
        assert all(s["attempts"] == expected_attempts for s in summaries)

    async def test_follow_up_round_then_no_gaps(self, config, sleep) -> None:
        registry = _two_tools()
        model = MockResearchChatModel(
            structured_responses={
                "QueryAnalysisOutput": [{"intent": "search"}],
                "ToolSelectionOutput": [
                    {"selected_tools": ["tool_a"], "reasoning": ["best"]},
                    {"selected_tools": ["tool_b"], "reasoning": ["remaining"]},
                ],
                "QueryOptimizationOutput": [{"optimizations": []}],
                "RelevanceOutput": [{"relevant_indices": [0]}],
                "GapAnalysisOutput": [
                    {"has_gaps": True, "follow_up_query": "more detail"},
                    {"has_gaps": False},
                ],
            },
            text_responses=["A [1] and B [2]."],
        )
        cfg = ResearchConfig(**{**config.to_dict(), "max_tools_per_round": 1})
        orchestrator = ResearchOrchestrator(model, registry, cfg, sleep=sleep)

        result = await orchestrator.research(QUERY, depth=3)

        assert result.metadata["iterations"] == 2
        assert result.metadata["stop_reason"] == "no_gaps"
        assert result.metadata["follow_up_queries"] == ["more detail"]
        assert result.metadata["tools_used"] == ["tool_a", "tool_b"]
        assert [s.id for s in result.sources] == [1, 2]
        assert [s.title for s in result.sources] == ["A", "B"]
        assert registry.get("tool_b").calls == [{"query": "more detail"}]
        assert model.count("GapAnalysisOutput") == 2
        assert [g["round"] for g in result.metadata["gap_analysis"]] == [1, 2]


# ===================================================================== #
#  Loop invariants                                                       #
# ===================================================================== #


class TestLoopInvariants:
    async def test_tool_exhaustion(self, paris_registry, paris_tool, config, sleep) -> None:
        orchestrator = ResearchOrchestrator(
            _always_gap_model(), paris_registry, config, sleep=sleep
        )
        result = await orchestrator.research(QUERY, depth=3)
        assert result.metadata["stop_reason"] == "tool_exhaustion"
        assert result.metadata["iterations"] == 1
        assert len(paris_tool.calls) == 1

    async def test_no_tool_reused_within_a_run(self, config, sleep) -> None:
        registry = _two_tools()
        cfg = ResearchConfig(**{**config.to_dict(), "max_tools_per_round": 1})
        orchestrator = ResearchOrchestrator(_always_gap_model(), registry, cfg, sleep=sleep)
        result = await orchestrator.research(QUERY, depth=5)
        tools_used = result.metadata["tools_used"]
        assert len(tools_used) == len(set(tools_used)) == 2
        assert [r["tool"] for r in result.metadata["tool_results"]] == ["tool_a", "tool_b"]

    @pytest.mark.parametrize("depth", [1, 2, 4])
    async def test_iterations_bounded_by_depth(self, paris_registry, config, sleep, depth) -> None:
        cfg = ResearchConfig(**{**config.to_dict(), "allow_tool_reuse": True})
        orchestrator = ResearchOrchestrator(_always_gap_model(), paris_registry, cfg, sleep=sleep)
        result = await orchestrator.research(QUERY, depth=depth)
        assert result.metadata["iterations"] == depth
        assert result.metadata["stop_reason"] == "max_depth"

    async def test_source_ids_unique_and_sorted(self, config, sleep) -> None:
        registry = ToolRegistry(
            [
                StaticTool(
                    "multi",
                    [{"title": f"T{i}", "url": f"https://example.com/{i}"} for i in range(3)],
                    score=0.9,
                ),
                StaticTool("single", {"title": "S", "url": "https://example.com/s"}, score=0.8),
            ]
        )
        orchestrator = ResearchOrchestrator(
            MockResearchChatModel(fail_all=True), registry, config, sleep=sleep
        )
        result = await orchestrator.research(QUERY, depth=1)
        ids = [s.id for s in result.sources]
        assert ids == sorted(set(ids)) == [1, 2, 3, 4]

    async def test_deadline_stops_after_round(self, clock, config, sleep) -> None:
        registry = ToolRegistry(
            [ClockAdvancingTool("slow_a", clock, 20.0), ClockAdvancingTool("slow_b", clock, 20.0)]
        )
        cfg = ResearchConfig(
            **{**config.to_dict(), "deadline": 10.0, "max_tools_per_round": 1}
        )
        model = _always_gap_model()
        orchestrator = ResearchOrchestrator(model, registry, cfg, clock=clock, sleep=sleep)

        result = await orchestrator.research(QUERY, depth=3)

        assert result.metadata["stop_reason"] == "deadline"
        assert result.metadata["iterations"] == 1
        assert model.count("GapAnalysisOutput") == 0
        assert result.answer == "Summary [1]."

    async def test_slow_reasoning_does_not_overrun_deadline(self, config, sleep) -> None:
        model = MockResearchChatModel(
            structured_responses={
                "RelevanceOutput": [{"relevant_indices": []}],
                "GapAnalysisOutput": [{"has_gaps": True, "follow_up_query": "more detail"}],
            },
            text_responses=["Paris [1]."],
            latency={"RelevanceOutput": 3.0, "GapAnalysisOutput": 3.0},
        )
        cfg = ResearchConfig(**{**config.to_dict(), "deadline": 0.5, "llm_timeout": 10.0})
        registry = ToolRegistry(
            [StaticTool("paris", {"title": "Paris", "url": "https://example.com/paris"})]
        )
        orchestrator = ResearchOrchestrator(model, registry, cfg, sleep=sleep)

        started = time.monotonic()
        result = await orchestrator.research(QUERY, depth=3)
        elapsed = time.monotonic() - started

        assert elapsed < 2.0
        assert result.metadata["stop_reason"] == "deadline"
        assert result.metadata["iterations"] == 1
        assert [s.title for s in result.sources] == ["Paris"]


# ===================================================================== #
#  Never raises                                                          #
# ===================================================================== #


class TestNeverRaises:
    async def test_everything_fails(self, config, sleep) -> None:
        registry = ToolRegistry([FailingTool("a", raises=True), FailingTool("b", raises=True)])
        orchestrator = ResearchOrchestrator(
            MockResearchChatModel(fail_all=True), registry, config, sleep=sleep
        )
        for depth in (1, 3, 5):
            result = await orchestrator.research(QUERY, depth=depth)
            assert 0.0 <= result.confidence <= 1.0
            assert result.answer

    async def test_empty_query(self, paris_registry, paris_tool, config, sleep) -> None:
        model = MockResearchChatModel(fail_all=True)
        orchestrator = ResearchOrchestrator(model, paris_registry, config, sleep=sleep)
        result = await orchestrator.research("   ")
        assert result.metadata["stop_reason"] == "empty_query"
        assert result.confidence == 0.0
        assert "no results" in result.answer
        assert model.calls == []
        assert paris_tool.calls == []

    @pytest.mark.parametrize("depth,expected", [(0, 1), (-2, 1), (9, 5), ("deep", 3)])
    async def test_depth_normalized(self, paris_registry, config, sleep, depth, expected) -> None:
        cfg = ResearchConfig(**{**config.to_dict(), "allow_tool_reuse": True})
        orchestrator = ResearchOrchestrator(_always_gap_model(), paris_registry, cfg, sleep=sleep)
        result = await orchestrator.research(QUERY, depth=depth)
        assert result.metadata["iterations"] == expected

    async def test_unexpected_error_is_contained(self, paris_registry, config, sleep) -> None:
        orchestrator = ResearchOrchestrator(
            MockResearchChatModel(fail_all=True), paris_registry, config, sleep=sleep
        )

        orchestrator._graph = BrokenGraph()
        result = await orchestrator.research(QUERY)
        assert result.confidence == 0.0
        assert result.answer.startswith("Research failed: graph exploded.")
        assert QUERY in result.answer
        assert result.metadata["stop_reason"] == "error"

    def test_invalid_config_rejected_up_front(self, paris_registry) -> None:
        with pytest.raises(ValueError):
            ResearchOrchestrator(
                MockResearchChatModel(), paris_registry, ResearchConfig(max_retries=-1)
            )


# ===================================================================== #
#  Caching and the module-level entry point                             #
# ===================================================================== #


class TestCachingAcrossRuns:
    async def test_second_run_served_from_cache(self, paris_registry, paris_tool, config, sleep) -> None:
        cache = InMemoryResultCache()
        model = MockResearchChatModel(fail_all=True)

        first = await ResearchOrchestrator(
            model, paris_registry, config, cache, sleep=sleep
        ).research(QUERY, depth=1)
        second = await ResearchOrchestrator(
            model, paris_registry, config, cache, sleep=sleep
        ).research(QUERY, depth=1)

        assert len(paris_tool.calls) == 1
        assert first.metadata["tool_results"][0]["from_cache"] is False
        assert second.metadata["tool_results"][0]["from_cache"] is True
        assert [s.url for s in second.sources] == [s.url for s in first.sources]


class TestResearchFunction:
    async def test_one_shot(self, paris_registry, config) -> None:
        model = MockResearchChatModel(
            structured_responses={"RelevanceOutput": [{"relevant_indices": [0]}]},
            text_responses=["Paris [1]."],
        )
        result = await research(QUERY, 1, model=model, registry=paris_registry, config=config)
        assert result.answer == "Paris [1]."
        assert len(result.sources) == 1
