"""Domain enumerations for the research orchestration engine.

These enums capture the fixed vocabularies used across the domain layer:
query intents, query types, the loop's state-machine phases, and the reasons
a research run stops iterating.
"""

from enum import Enum


class Intent(str, Enum):
    """What the user wants to do with the answer."""

    SEARCH = "search"
    EXPLAIN = "explain"
    COMPARE = "compare"
    IMPLEMENT = "implement"
    EXTRACT = "extract"


class QueryType(str, Enum):
    """Coarse topical classification of a query.

    Tools declare an affinity weight per query type in their compatibility
    metadata; the values here are the keys they use.
    """

    TECHNICAL = "technical"
    CURRENT_EVENTS = "current_events"
    GENERAL_KNOWLEDGE = "general_knowledge"
    COMPARISON = "comparison"
    IMPLEMENTATION = "implementation"
    CONTENT_EXTRACTION = "content_extraction"
    VIDEO_CONTENT = "video_content"
    ACADEMIC = "academic"


class ResearchPhase(str, Enum):
    """Finite-state-machine phases of the research loop."""

    ANALYZING = "analyzing"
    SELECTING = "selecting"
    OPTIMIZING = "optimizing"
    EXECUTING = "executing"
    ASSESSING = "assessing"
    SYNTHESIZING = "synthesizing"
    DONE = "done"


class StopReason(str, Enum):
    """Why the loop stopped selecting new tools."""

    NO_GAPS = "no_gaps"
    NO_FOLLOW_UP = "no_follow_up"
    MAX_DEPTH = "max_depth"
    TOOL_EXHAUSTION = "tool_exhaustion"
    DEADLINE = "deadline"
    EMPTY_QUERY = "empty_query"
