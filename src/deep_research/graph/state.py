"""LangGraph state definition for the research loop.

Defines ``IterationState``, a ``TypedDict`` that flows through the
LangGraph ``StateGraph``.  Everything that accumulates across rounds
(accepted results, sources, used tool ids, per-round reasoning) uses an
``Annotated[list, operator.add]`` channel so each node only emits what it
added.

Note: We intentionally do NOT use ``from __future__ import annotations`` because
LangGraph needs to resolve type hints at runtime via ``get_type_hints()``.
"""

import operator
from typing import Annotated, Any, TypedDict

from deep_research.domain.values import GapReport, OptimizedQuery, QueryAnalysis


class IterationState(TypedDict, total=False):
    """State flowing through the research LangGraph.

    Fields are grouped into:

    * **Run inputs** -- set once by the orchestrator.
    * **Loop control** -- round counter, current phase, termination reason.
    * **Current round** -- overwritten by each round.
    * **Accumulation channels** -- append-reducers across rounds.
    * **Output** -- written by the synthesize node.
    """

    # -- Run inputs ----------------------------------------------------------
    query: str
    depth: int
    started_at: float

    # -- Loop control --------------------------------------------------------
    iteration: int
    phase: str
    stop_reason: str

    # -- Current round -------------------------------------------------------
    analysis: QueryAnalysis
    working_query: str
    current_analysis: QueryAnalysis
    selected_tool_ids: list[str]
    optimized_queries: dict[str, OptimizedQuery]
    round_results: list[Any]
    gap_report: GapReport

    # -- Accumulation channels (append-reducers) -----------------------------
    used_tool_ids: Annotated[list, operator.add]
    all_results: Annotated[list, operator.add]
    accepted_results: Annotated[list, operator.add]
    sources: Annotated[list, operator.add]
    selection_reasoning: Annotated[list, operator.add]
    follow_up_queries: Annotated[list, operator.add]
    gap_reports: Annotated[list, operator.add]

    # -- Output --------------------------------------------------------------
    answer: str
    confidence_breakdown: dict[str, Any]
