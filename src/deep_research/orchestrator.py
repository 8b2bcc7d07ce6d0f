"""Public entry point of the research engine.

:class:`ResearchOrchestrator` wires the stage services into the LangGraph
loop and turns the final graph state into a :class:`ResearchResult`.
:meth:`ResearchOrchestrator.research` never raises.

Usage::

    from deep_research import ResearchOrchestrator, create_chat_model

    orchestrator = ResearchOrchestrator(create_chat_model("anthropic"))
    result = await orchestrator.research("What is the capital of France?", depth=2)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from langchain_core.language_models import BaseChatModel

from deep_research.domain.entities import ResearchResult, ToolResult
from deep_research.domain.enums import StopReason
from deep_research.graph.graph import build_research_graph
from deep_research.infrastructure.cache import ResultCache
from deep_research.infrastructure.config import MAX_DEPTH, MIN_DEPTH, ResearchConfig, clamp_depth
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.services.assessment import ResultAssessor
from deep_research.services.confidence import ConfidenceScorer
from deep_research.services.execution import SleepFunc, ToolExecutor
from deep_research.services.query_analysis import QueryAnalyzer
from deep_research.services.query_optimization import QueryOptimizer
from deep_research.services.synthesis import Synthesizer
from deep_research.services.tool_selection import ToolSelector
from deep_research.tools.catalog import default_registry

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 3


def _tool_summary(result: ToolResult) -> dict[str, Any]:
    summary = {
        "tool": result.tool_id,
        "success": result.success,
        "confidence": result.confidence,
        "attempts": result.metadata.get("attempts", 0),
        "from_cache": result.from_cache,
    }
    if result.error:
        summary["error"] = result.error
    return summary


class ResearchOrchestrator:
    """Iterative multi-source research over a tool catalog.

    Parameters
    ----------
    model:
        A LangChain chat model used by every reasoning stage.
    registry:
        Tool catalog.  Defaults to :func:`~deep_research.tools.default_registry`.
    config:
        Run limits; validated on construction.
    cache:
        Optional :class:`ResultCache` in front of tool execution.
    clock:
        Monotonic time source for elapsed time and the deadline.
    sleep:
        Backoff sleep for retries; tests pass a no-op.
    """

    def __init__(
        self,
        model: BaseChatModel,
        registry: ToolRegistry | None = None,
        config: ResearchConfig | None = None,
        cache: ResultCache | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.config = config or ResearchConfig()
        self.config.validate()
        self.registry = registry if registry is not None else default_registry()
        self.model = model
        self._clock = clock

        cfg = self.config
        analyzer = QueryAnalyzer(model, llm_timeout=cfg.llm_timeout)
        self._graph = build_research_graph(
            registry=self.registry,
            analyzer=analyzer,
            selector=ToolSelector(
                model, self.registry, llm_timeout=cfg.llm_timeout, min_score=cfg.min_tool_score
            ),
            optimizer=QueryOptimizer(model, llm_timeout=cfg.llm_timeout),
            executor=ToolExecutor(
                cache=cache,
                cache_ttl=cfg.cache_ttl,
                retry_base_delay=cfg.retry_base_delay,
                tool_timeout=cfg.tool_timeout,
                sleep=sleep,
            ),
            assessor=ResultAssessor(
                model,
                llm_timeout=cfg.llm_timeout,
                batch_size=cfg.relevance_batch_size,
                max_concurrent_batches=cfg.max_concurrent_batches,
                diversity_threshold=cfg.diversity_threshold,
                gap_sample_size=cfg.effective_gap_sample_size,
                seed=cfg.random_seed,
            ),
            synthesizer=Synthesizer(model, llm_timeout=cfg.llm_timeout),
            scorer=ConfidenceScorer(),
            config=cfg,
            clock=clock,
        )

    async def research(self, query: str, depth: int = DEFAULT_DEPTH) -> ResearchResult:
        """Research *query* for at most *depth* rounds.  Never raises.

        *depth* is clamped into ``[1, 5]``.  Every failure inside the run
        degrades to a fallback; anything unexpected still yields a result
        with confidence 0.
        """
        started = self._clock()
        try:
            return await self._research(query, depth, started)
        except Exception as exc:
            logger.error("Research run failed unexpectedly: %s", exc, exc_info=True)
            return ResearchResult(
                answer=f"Research failed: {exc}. No results were found for: {query}",
                confidence=0.0,
                metadata={
                    "execution_time": self._clock() - started,
                    "iterations": 0,
                    "total_results": 0,
                    "stop_reason": "error",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )

    async def _research(self, query: str, depth: Any, started: float) -> ResearchResult:
        depth = self._normalize_depth(depth)
        query = (query or "").strip()
        if not query:
            return ResearchResult(
                answer="No query was provided, so no results were found.",
                confidence=0.0,
                metadata={
                    "execution_time": self._clock() - started,
                    "iterations": 0,
                    "total_results": 0,
                    "stop_reason": StopReason.EMPTY_QUERY.value,
                },
            )

        logger.info("Researching %r (depth=%d)", query, depth)
        state = await self._graph.ainvoke(
            {"query": query, "depth": depth, "started_at": started},
            config={"recursion_limit": 10 + 5 * depth},
        )
        return self._build_result(state, started)

    @staticmethod
    def _normalize_depth(depth: Any) -> int:
        try:
            requested = int(depth)
        except (TypeError, ValueError):
            logger.warning("Invalid depth %r, using %d", depth, DEFAULT_DEPTH)
            return DEFAULT_DEPTH
        clamped = clamp_depth(requested)
        if clamped != requested:
            logger.warning(
                "Depth %d outside [%d, %d], clamped to %d",
                requested, MIN_DEPTH, MAX_DEPTH, clamped,
            )
        return clamped

    def _build_result(self, state: dict[str, Any], started: float) -> ResearchResult:
        accepted = state.get("accepted_results", [])
        sources = sorted(state.get("sources", []), key=lambda s: s.id)
        breakdown = state.get("confidence_breakdown", {})
        analysis = state.get("analysis")
        return ResearchResult(
            answer=state.get("answer") or f"No relevant results were found for: {state['query']}",
            sources=sources,
            confidence=breakdown.get("score", 0.0),
            metadata={
                "execution_time": self._clock() - started,
                "iterations": state.get("iteration", 0),
                "total_results": len(accepted),
                "query_types": analysis.query_type_names if analysis is not None else [],
                "tools_used": list(state.get("used_tool_ids", [])),
                "tool_selection_reasoning": list(state.get("selection_reasoning", [])),
                "tool_results": [_tool_summary(r) for r in state.get("all_results", [])],
                "stop_reason": state.get("stop_reason", ""),
                "follow_up_queries": list(state.get("follow_up_queries", [])),
                "gap_analysis": list(state.get("gap_reports", [])),
                "confidence_breakdown": dict(breakdown),
            },
        )


async def research(
    query: str,
    depth: int = DEFAULT_DEPTH,
    *,
    model: BaseChatModel,
    registry: ToolRegistry | None = None,
    config: ResearchConfig | None = None,
    cache: ResultCache | None = None,
) -> ResearchResult:
    """One-shot convenience wrapper around :class:`ResearchOrchestrator`."""
    orchestrator = ResearchOrchestrator(model, registry=registry, config=config, cache=cache)
    return await orchestrator.research(query, depth)
