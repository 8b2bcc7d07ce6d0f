"""Build the research StateGraph.

``build_research_graph()`` wires six nodes into the loop::

    START -> analyze -> select -(tools)-> optimize -> execute -> assess
                          |                                        |
                          +--(exhausted / deadline)                +--(gap) -> select
                          v                                        v
                       synthesize <--------------(stop)------------+
                          |
                         END
"""

import time
from collections.abc import Callable
from typing import Any

from langgraph.graph import END, START, StateGraph

from deep_research.graph.edges import after_assess, after_select
from deep_research.graph.nodes import (
    make_analyze_node,
    make_assess_node,
    make_execute_node,
    make_optimize_node,
    make_select_node,
    make_synthesize_node,
)
from deep_research.graph.state import IterationState
from deep_research.infrastructure.config import ResearchConfig
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.services.assessment import ResultAssessor
from deep_research.services.confidence import ConfidenceScorer
from deep_research.services.execution import ToolExecutor
from deep_research.services.query_analysis import QueryAnalyzer
from deep_research.services.query_optimization import QueryOptimizer
from deep_research.services.synthesis import Synthesizer
from deep_research.services.tool_selection import ToolSelector


def build_research_graph(
    *,
    registry: ToolRegistry,
    analyzer: QueryAnalyzer,
    selector: ToolSelector,
    optimizer: QueryOptimizer,
    executor: ToolExecutor,
    assessor: ResultAssessor,
    synthesizer: Synthesizer,
    scorer: ConfidenceScorer,
    config: ResearchConfig,
    clock: Callable[[], float] = time.monotonic,
    checkpointer: Any | None = None,
) -> Any:
    """Build and compile the research StateGraph.

    Parameters
    ----------
    registry:
        Tool catalog shared by selection, execution and citation.
    analyzer, selector, optimizer, executor, assessor, synthesizer, scorer:
        Stage services, injected into the nodes by closure.
    config:
        Run limits (tools per round, retries, deadline, tool reuse).
    clock:
        Monotonic time source used for the deadline; injectable for tests.
    checkpointer:
        Optional LangGraph checkpointer for persistence.

    Returns
    -------
    CompiledStateGraph
        A compiled graph ready for ``.ainvoke()`` or ``.astream()``.
    """
    graph = StateGraph(IterationState)

    graph.add_node("analyze", make_analyze_node(analyzer))
    graph.add_node("select", make_select_node(selector, analyzer, config, clock))
    graph.add_node("optimize", make_optimize_node(optimizer, registry, config, clock))
    graph.add_node("execute", make_execute_node(executor, registry, config, clock))
    graph.add_node("assess", make_assess_node(assessor, registry, config, clock))
    graph.add_node("synthesize", make_synthesize_node(synthesizer, scorer))

    graph.add_edge(START, "analyze")
    graph.add_edge("analyze", "select")
    graph.add_conditional_edges(
        "select",
        after_select,
        {"optimize": "optimize", "synthesize": "synthesize"},
    )
    graph.add_edge("optimize", "execute")
    graph.add_edge("execute", "assess")
    graph.add_conditional_edges(
        "assess",
        after_assess,
        {"select": "select", "synthesize": "synthesize"},
    )
    graph.add_edge("synthesize", END)

    return graph.compile(checkpointer=checkpointer)
