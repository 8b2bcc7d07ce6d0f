"""LangGraph node factories for the research loop.

Each ``make_*_node`` closes over the service it delegates to and returns
an async node function.  The function takes an ``IterationState`` and
returns a partial update dict.  Nodes never raise: every service they call
already degrades to its documented fallback, and with a run deadline set the
reasoning calls are cut off when it passes and take the same fallbacks.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from deep_research.domain.entities import ToolResult
from deep_research.domain.enums import ResearchPhase, StopReason
from deep_research.domain.values import GapReport
from deep_research.infrastructure.config import ResearchConfig
from deep_research.infrastructure.llm import describe_error
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.services.assessment import ResultAssessor, gap_metadata
from deep_research.services.confidence import ConfidenceScorer
from deep_research.services.execution import ToolExecutor
from deep_research.services.query_analysis import QueryAnalyzer
from deep_research.services.query_optimization import QueryOptimizer, tool_params
from deep_research.services.sources import extract_sources
from deep_research.services.synthesis import Synthesizer
from deep_research.services.tool_selection import ToolSelector

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
NodeFn = Callable[[dict[str, Any]], Any]
T = TypeVar("T")


def _deadline_passed(state: dict[str, Any], config: ResearchConfig, clock: Clock) -> bool:
    if config.deadline is None:
        return False
    return clock() - state.get("started_at", clock()) >= config.deadline


def _remaining(state: dict[str, Any], config: ResearchConfig, clock: Clock) -> float | None:
    if config.deadline is None:
        return None
    return max(0.0, config.deadline - (clock() - state.get("started_at", clock())))


async def _within_deadline(
    awaitable: Awaitable[T], state: dict[str, Any], config: ResearchConfig, clock: Clock
) -> T:
    """Await *awaitable* for at most the time left in the run.

    Raises ``asyncio.TimeoutError`` once the deadline passes.
    """
    return await asyncio.wait_for(awaitable, timeout=_remaining(state, config, clock))


# ===================================================================== #
#  Analyze                                                               #
# ===================================================================== #

def make_analyze_node(analyzer: QueryAnalyzer) -> NodeFn:
    """Analyze the original query once, before the first round."""

    async def analyze_node(state: dict[str, Any]) -> dict[str, Any]:
        query = state["query"]
        analysis = await analyzer.analyze(query)
        logger.debug(
            "analyze: intent=%s types=%s", analysis.intent.value, analysis.query_type_names
        )
        return {
            "phase": ResearchPhase.ANALYZING.value,
            "analysis": analysis,
            "current_analysis": analysis,
            "working_query": query,
            "iteration": 0,
        }

    return analyze_node


# ===================================================================== #
#  Select                                                                #
# ===================================================================== #

def make_select_node(
    selector: ToolSelector,
    analyzer: QueryAnalyzer,
    config: ResearchConfig,
    clock: Clock = time.monotonic,
) -> NodeFn:
    """Pick this round's tools, excluding those used earlier in the run.

    A follow-up query is analyzed afresh before selection so scoring and
    optimization see its own entities and types.
    """

    async def select_node(state: dict[str, Any]) -> dict[str, Any]:
        update: dict[str, Any] = {"phase": ResearchPhase.SELECTING.value}
        round_no = state.get("iteration", 0) + 1

        if _deadline_passed(state, config, clock):
            logger.info("Deadline reached before round %d", round_no)
            update.update(stop_reason=StopReason.DEADLINE.value, selected_tool_ids=[])
            return update

        working_query = state["working_query"]
        used = list(state.get("used_tool_ids", []))
        exclude = () if config.allow_tool_reuse else used

        async def choose() -> tuple[Any, list[Any], list[str]]:
            analysis = state["current_analysis"]
            if analysis.original_query != working_query:
                analysis = await analyzer.analyze(working_query)
            tools, reasoning = await selector.select(
                working_query, analysis, exclude, config.max_tools_per_round
            )
            return analysis, list(tools), list(reasoning)

        try:
            analysis, tools, reasoning = await _within_deadline(choose(), state, config, clock)
        except asyncio.TimeoutError:
            logger.warning("Deadline reached while selecting tools for round %d", round_no)
            update.update(stop_reason=StopReason.DEADLINE.value, selected_tool_ids=[])
            return update
        if analysis is not state["current_analysis"]:
            update["current_analysis"] = analysis

        if not tools:
            logger.info("Round %d: no unused tools remain, stopping", round_no)
            update.update(stop_reason=StopReason.TOOL_EXHAUSTION.value, selected_tool_ids=[])
            return update

        ids = [t.id for t in tools]
        logger.info("Round %d: selected %s for %r", round_no, ids, working_query)
        update.update(
            selected_tool_ids=ids,
            used_tool_ids=[i for i in ids if i not in used],
            selection_reasoning=[
                {
                    "round": round_no,
                    "query": working_query,
                    "tools": ids,
                    "reasoning": list(reasoning),
                }
            ],
        )
        return update

    return select_node


# ===================================================================== #
#  Optimize                                                              #
# ===================================================================== #

def make_optimize_node(
    optimizer: QueryOptimizer,
    registry: ToolRegistry,
    config: ResearchConfig | None = None,
    clock: Clock = time.monotonic,
) -> NodeFn:
    """Rewrite the working query for each selected tool.

    Past the deadline every tool gets the raw working query.
    """
    config = config or ResearchConfig()

    async def optimize_node(state: dict[str, Any]) -> dict[str, Any]:
        tools = [registry.get(i) for i in state.get("selected_tool_ids", [])]
        try:
            optimized = await _within_deadline(
                optimizer.optimize(state["working_query"], state["current_analysis"], tools),
                state,
                config,
                clock,
            )
        except asyncio.TimeoutError:
            logger.warning("Deadline reached while optimizing queries, using the raw query")
            optimized = {}
        return {
            "phase": ResearchPhase.OPTIMIZING.value,
            "optimized_queries": optimized,
        }

    return optimize_node


# ===================================================================== #
#  Execute                                                               #
# ===================================================================== #

def make_execute_node(
    executor: ToolExecutor,
    registry: ToolRegistry,
    config: ResearchConfig,
    clock: Clock = time.monotonic,
) -> NodeFn:
    """Run the selected tools concurrently and count the round."""

    async def execute_node(state: dict[str, Any]) -> dict[str, Any]:
        tools = [registry.get(i) for i in state.get("selected_tool_ids", [])]
        optimized = state.get("optimized_queries", {})
        params = {
            tool.id: tool_params(optimized[tool.id])
            if tool.id in optimized
            else {"query": state["working_query"]}
            for tool in tools
        }

        remaining = _remaining(state, config, clock)
        try:
            results = await asyncio.wait_for(
                executor.execute_round(tools, params, config.max_retries),
                timeout=remaining,
            )
        except asyncio.TimeoutError:
            logger.warning("Deadline reached while executing %s", [t.id for t in tools])
            results = [
                ToolResult.fail("deadline exceeded", tool_id=t.id, attempts=0, confidence=0.0)
                for t in tools
            ]

        ok = sum(1 for r in results if r.success)
        logger.info("Round %d: %d/%d tools succeeded", state.get("iteration", 0) + 1, ok, len(results))
        return {
            "phase": ResearchPhase.EXECUTING.value,
            "round_results": results,
            "all_results": results,
            "iteration": state.get("iteration", 0) + 1,
        }

    return execute_node


# ===================================================================== #
#  Assess                                                                #
# ===================================================================== #

def make_assess_node(
    assessor: ResultAssessor,
    registry: ToolRegistry,
    config: ResearchConfig,
    clock: Clock = time.monotonic,
) -> NodeFn:
    """Filter this round's results, cite them and decide whether to go on."""
    names = {tool.id: tool.name for tool in registry}

    async def assess_node(state: dict[str, Any]) -> dict[str, Any]:
        successes = [r for r in state.get("round_results", []) if r.success]
        try:
            accepted = await _within_deadline(
                assessor.assess_relevance(state["working_query"], successes),
                state,
                config,
                clock,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Deadline reached during relevance assessment, keeping %d results",
                len(successes),
            )
            accepted = successes
        start_id = len(state.get("sources", [])) + 1
        sources = extract_sources(accepted, start_id=start_id, tool_names=names)

        update: dict[str, Any] = {
            "phase": ResearchPhase.ASSESSING.value,
            "accepted_results": accepted,
            "sources": sources,
        }

        iteration = state.get("iteration", 0)
        if _deadline_passed(state, config, clock):
            update["stop_reason"] = StopReason.DEADLINE.value
        elif iteration >= state["depth"]:
            update["stop_reason"] = StopReason.MAX_DEPTH.value
        else:
            all_accepted = list(state.get("accepted_results", [])) + accepted
            timed_out = False
            try:
                report = await _within_deadline(
                    assessor.analyze_gaps(state["query"], all_accepted), state, config, clock
                )
            except asyncio.TimeoutError as exc:
                logger.warning("Deadline reached during gap analysis, stopping")
                report = GapReport(has_gaps=False, metadata=describe_error(exc))
                timed_out = True
            update["gap_report"] = report
            update["gap_reports"] = [{"round": iteration, **gap_metadata(report)}]
            if timed_out:
                update["stop_reason"] = StopReason.DEADLINE.value
            elif not report.has_gaps:
                update["stop_reason"] = StopReason.NO_GAPS.value
            elif not report.follow_up_query:
                update["stop_reason"] = StopReason.NO_FOLLOW_UP.value
            else:
                logger.info("Gap found, following up with %r", report.follow_up_query)
                update["working_query"] = report.follow_up_query
                update["follow_up_queries"] = [report.follow_up_query]

        if "stop_reason" in update:
            logger.info("Stopping after round %d: %s", iteration, update["stop_reason"])
        return update

    return assess_node


# ===================================================================== #
#  Synthesize                                                            #
# ===================================================================== #

def make_synthesize_node(synthesizer: Synthesizer, scorer: ConfidenceScorer) -> NodeFn:
    """Write the answer over every accepted result and score it."""

    async def synthesize_node(state: dict[str, Any]) -> dict[str, Any]:
        accepted = list(state.get("accepted_results", []))
        sources = list(state.get("sources", []))
        answer = await synthesizer.synthesize(state["query"], accepted, sources)
        breakdown = scorer.score(accepted, state["analysis"], answer)
        return {
            "phase": ResearchPhase.DONE.value,
            "answer": answer,
            "confidence_breakdown": breakdown.to_dict(),
        }

    return synthesize_node
