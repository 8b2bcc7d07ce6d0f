"""Relevance filtering and gap analysis over accumulated tool results.

Relevance assessment is **fail-open**: if the reasoning service cannot
judge a batch, the whole batch is kept.  Gap analysis is **fail-closed**:
if the reasoning service cannot answer, the run reports no gap and stops
iterating.

Both operations batch large result sets.  Batches run concurrently under
an ``asyncio.Semaphore`` so at most ``max_concurrent_batches`` reasoning
calls are in flight.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from deep_research.domain.entities import ToolResult
from deep_research.domain.values import GapReport
from deep_research.infrastructure.llm import ainvoke_chain, describe_error
from deep_research.services.sources import render_results

logger = logging.getLogger(__name__)

T = TypeVar("T")

# -- Structured output schemas -----------------------------------------------


class RelevanceOutput(BaseModel):
    """Structured output schema for relevance assessment."""

    relevant_indices: list[int] = Field(
        default_factory=list,
        description="0-based indices of the results that meet ALL criteria",
    )
    reasoning: str = Field(default="", description="Brief justification")


class GapAnalysisOutput(BaseModel):
    """Structured output schema for gap analysis."""

    has_gaps: bool = Field(description="True only for a critical unanswered aspect")
    follow_up_query: str | None = Field(
        default=None, description="Query that would fill the gap, if any"
    )
    gap_explanation: str = Field(
        default="", description="Brief explanation of the critical gap, if any"
    )


# -- Prompts -----------------------------------------------------------------

_RELEVANCE_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a strict research analyst. Only include results that are "
            "relevant, reputable, current, and substantive.",
        ),
        (
            "human",
            "Assess which of these results are relevant and high-quality:\n\n"
            'Query: "{query}"\n'
            "Today's Date: {today}\n\n"
            "Results:\n{results}\n\n"
            "Consider each result carefully:\n"
            "1. Is it directly relevant to answering the query?\n"
            "2. Is it from a reputable source?\n"
            "3. Is it sufficiently current for this type of information?\n"
            "4. Does it provide accurate, substantive information?\n"
            "{diversity_instruction}\n"
            "Return the 0-based indices of the results that meet ALL criteria.",
        ),
    ]
)

_DIVERSITY_INSTRUCTION = (
    "5. Does it add information the other kept results do not? Drop "
    "near-duplicates and favour coverage of different aspects over raw count.\n"
)

_GAP_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You analyze result completeness, identifying only critical "
            "information gaps that would substantially impact the answer. Be "
            "conservative - only suggest follow-up queries for major gaps.",
        ),
        (
            "human",
            "Analyze these research results for critical information gaps:\n\n"
            'Original Query: "{query}"\n\n'
            "Current Results:\n{results}\n\n"
            "Consider:\n"
            "1. Are there MAJOR aspects of the query that remain completely unanswered?\n"
            "2. Is there a CRITICAL piece of information missing that would "
            "significantly change the answer?\n"
            "3. Would additional research likely yield substantially different "
            "or more accurate results?\n\n"
            "IMPORTANT: Only identify truly critical gaps that would significantly "
            "impact the answer. If the current results provide a reasonably "
            "complete answer, report no gaps.",
        ),
    ]
)


def _chunks(items: Sequence[T], size: int) -> list[list[T]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


# -- ResultAssessor ----------------------------------------------------------


class ResultAssessor:
    """Relevance filter and gap analyzer.

    Parameters
    ----------
    model:
        A LangChain chat model.
    llm_timeout:
        Optional timeout in seconds for each reasoning call.
    batch_size:
        Result count above which work is split into batches.
    max_concurrent_batches:
        Upper bound on batches talking to the reasoning service at once.
    diversity_threshold:
        Survivor count above which one extra diversity pass runs.
    gap_sample_size:
        Size bound of the final gap-analysis pass (defaults to *batch_size*).
    seed:
        Seed for the random part of the final gap-analysis sample.
    """

    def __init__(
        self,
        model: BaseChatModel,
        llm_timeout: float | None = None,
        batch_size: int = 10,
        max_concurrent_batches: int = 3,
        diversity_threshold: int = 10,
        gap_sample_size: int | None = None,
        seed: int | None = None,
    ) -> None:
        self.model = model
        self.llm_timeout = llm_timeout
        self.batch_size = batch_size
        self.max_concurrent_batches = max_concurrent_batches
        self.diversity_threshold = diversity_threshold
        self.gap_sample_size = gap_sample_size or batch_size
        self._rng = random.Random(seed)
        self._relevance_chain = _RELEVANCE_PROMPT | model.with_structured_output(RelevanceOutput)
        self._gap_chain = _GAP_PROMPT | model.with_structured_output(GapAnalysisOutput)

    async def _bounded(
        self,
        batches: list[list[ToolResult]],
        func: Callable[[list[ToolResult]], Awaitable[T]],
    ) -> list[T]:
        semaphore = asyncio.Semaphore(self.max_concurrent_batches)

        async def run(batch: list[ToolResult]) -> T:
            async with semaphore:
                return await func(batch)

        return list(await asyncio.gather(*(run(b) for b in batches)))

    # -- relevance ---------------------------------------------------------

    async def assess_relevance(
        self, query: str, results: Sequence[ToolResult]
    ) -> list[ToolResult]:
        """Return the subset of *results* worth keeping.  Never raises."""
        results = list(results)
        if not results:
            return []
        if len(results) <= self.batch_size:
            return await self._relevance_batch(query, results)

        batches = _chunks(results, self.batch_size)
        logger.debug("Assessing relevance of %d results in %d batches", len(results), len(batches))
        kept = await self._bounded(batches, lambda b: self._relevance_batch(query, b))
        survivors = [r for batch in kept for r in batch]

        if len(survivors) > self.diversity_threshold:
            logger.debug("Running diversity pass over %d survivors", len(survivors))
            survivors = await self._relevance_batch(query, survivors, diversity=True)
        return survivors

    async def _relevance_batch(
        self,
        query: str,
        batch: list[ToolResult],
        diversity: bool = False,
    ) -> list[ToolResult]:
        try:
            result: RelevanceOutput = await ainvoke_chain(
                self._relevance_chain,
                {
                    "query": query,
                    "today": datetime.date.today().isoformat(),
                    "results": render_results(batch),
                    "diversity_instruction": _DIVERSITY_INSTRUCTION if diversity else "",
                },
                timeout=self.llm_timeout,
                stage="relevance",
            )
        except Exception as exc:
            logger.warning("Relevance assessment failed, keeping %d results: %s", len(batch), exc)
            return list(batch)

        wanted = {i for i in result.relevant_indices if 0 <= i < len(batch)}
        return [r for i, r in enumerate(batch) if i in wanted]

    # -- gaps --------------------------------------------------------------

    async def analyze_gaps(self, query: str, results: Sequence[ToolResult]) -> GapReport:
        """Decide whether another round is warranted.  Never raises."""
        results = list(results)
        if len(results) <= self.batch_size:
            return await self._gap_batch(query, results)

        batches = _chunks(results, self.batch_size)
        reports = await self._bounded(batches, lambda b: self._gap_batch(query, b))
        for index, report in enumerate(reports):
            if report.has_gaps:
                logger.info("Gap found in batch %d: %s", index, report.explanation)
                return report

        return await self._gap_batch(query, self._final_sample(batches))

    def _final_sample(self, batches: list[list[ToolResult]]) -> list[ToolResult]:
        """Best result of each batch plus a random sample of the rest."""
        limit = self.gap_sample_size
        representatives: list[ToolResult] = []
        rest: list[ToolResult] = []
        for batch in batches:
            best = max(range(len(batch)), key=lambda i: batch[i].confidence)
            representatives.append(batch[best])
            rest.extend(r for i, r in enumerate(batch) if i != best)
        representatives = representatives[:limit]
        room = max(0, limit - len(representatives))
        sample = self._rng.sample(rest, min(room, len(rest)))
        return representatives + sample

    async def _gap_batch(self, query: str, batch: list[ToolResult]) -> GapReport:
        try:
            result: GapAnalysisOutput = await ainvoke_chain(
                self._gap_chain,
                {"query": query, "results": render_results(batch)},
                timeout=self.llm_timeout,
                stage="gap_analysis",
            )
        except Exception as exc:
            logger.warning("Gap analysis failed, assuming no gaps: %s", exc)
            return GapReport(has_gaps=False, metadata=describe_error(exc))

        follow_up = (result.follow_up_query or "").strip() or None
        return GapReport(
            has_gaps=result.has_gaps,
            follow_up_query=follow_up if result.has_gaps else None,
            explanation=result.gap_explanation,
        )


def gap_metadata(report: GapReport) -> dict[str, Any]:
    """Compact view of a report for run metadata."""
    return {
        "has_gaps": report.has_gaps,
        "follow_up_query": report.follow_up_query,
        "explanation": report.explanation,
        **dict(report.metadata),
    }
