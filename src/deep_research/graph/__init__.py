"""LangGraph wiring of the research loop."""

from deep_research.graph.edges import after_assess, after_select
from deep_research.graph.graph import build_research_graph
from deep_research.graph.nodes import (
    make_analyze_node,
    make_assess_node,
    make_execute_node,
    make_optimize_node,
    make_select_node,
    make_synthesize_node,
)
from deep_research.graph.state import IterationState

__all__ = [
    "IterationState",
    "after_assess",
    "after_select",
    "build_research_graph",
    "make_analyze_node",
    "make_assess_node",
    "make_execute_node",
    "make_optimize_node",
    "make_select_node",
    "make_synthesize_node",
]
