"""Pipeline stages of the research loop.

One module per stage; each stage owns its prompt, its structured output
schema and its fallback.
"""

from deep_research.services.assessment import (
    GapAnalysisOutput,
    RelevanceOutput,
    ResultAssessor,
)
from deep_research.services.confidence import ConfidenceBreakdown, ConfidenceScorer
from deep_research.services.execution import ToolExecutor
from deep_research.services.query_analysis import (
    QueryAnalysisOutput,
    QueryAnalyzer,
    extract_media_links,
    extract_urls,
    heuristic_analysis,
    media_id,
)
from deep_research.services.query_optimization import (
    QueryOptimizationOutput,
    QueryOptimizer,
    ToolQuery,
)
from deep_research.services.sources import extract_sources
from deep_research.services.synthesis import Synthesizer
from deep_research.services.tool_selection import ToolSelectionOutput, ToolSelector

__all__ = [
    "ConfidenceBreakdown",
    "ConfidenceScorer",
    "GapAnalysisOutput",
    "QueryAnalysisOutput",
    "QueryAnalyzer",
    "QueryOptimizationOutput",
    "QueryOptimizer",
    "RelevanceOutput",
    "ResultAssessor",
    "Synthesizer",
    "ToolExecutor",
    "ToolQuery",
    "ToolSelectionOutput",
    "ToolSelector",
    "extract_media_links",
    "extract_sources",
    "extract_urls",
    "heuristic_analysis",
    "media_id",
]
