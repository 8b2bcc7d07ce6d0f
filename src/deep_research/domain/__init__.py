"""Domain layer for the research orchestration engine.

Re-exports all public domain types so that consumers can write::

    from deep_research.domain import QueryAnalysis, ToolResult, Intent
"""

# -- Enumerations -------------------------------------------------------------
from .enums import Intent, QueryType, ResearchPhase, StopReason

# -- Value Objects ------------------------------------------------------------
from .values import (
    GapReport,
    OptimizedQuery,
    Payload,
    QueryAnalysis,
    RecordList,
    SingleRecord,
    Source,
    as_payload,
)

# -- Entities -----------------------------------------------------------------
from .entities import ResearchResult, ToolResult

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    ConfigurationError,
    ReasoningServiceError,
    ResearchError,
    ToolExecutionError,
)

__all__ = [
    # Enums
    "Intent",
    "QueryType",
    "ResearchPhase",
    "StopReason",
    # Values
    "GapReport",
    "OptimizedQuery",
    "Payload",
    "QueryAnalysis",
    "RecordList",
    "SingleRecord",
    "Source",
    "as_payload",
    # Entities
    "ResearchResult",
    "ToolResult",
    # Exceptions
    "ConfigurationError",
    "ReasoningServiceError",
    "ResearchError",
    "ToolExecutionError",
]
