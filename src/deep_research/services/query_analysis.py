"""Query analysis: intent, entities, constraints, query types and links.

The reasoning service provides the rich reading of a query through
``model.with_structured_output(QueryAnalysisOutput)``.  When that call
fails for any reason the analyzer falls back to keyword heuristics and a
lower confidence.  URL and media-link extraction is pattern based on
both paths.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Literal

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from deep_research.domain.enums import Intent, QueryType
from deep_research.domain.values import QueryAnalysis
from deep_research.infrastructure.llm import ainvoke_chain, describe_error

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.5
BASE_CONFIDENCE = 0.7

# -- Patterns ----------------------------------------------------------------

_URL_RE = re.compile(r"https?://[^\s]+")
_MEDIA_RE = re.compile(
    r"(?:https?://)?(?:www\.)?(?:youtube\.com/watch\?v=|youtu\.be/)([a-zA-Z0-9_-]+)"
)

_INTENT_PATTERNS: tuple[tuple[Intent, re.Pattern[str]], ...] = (
    (Intent.EXPLAIN, re.compile(r"(explain|how|why|what is|describe)", re.I)),
    (Intent.COMPARE, re.compile(r"(compare|versus|vs|better|difference)", re.I)),
    (Intent.IMPLEMENT, re.compile(r"(implement|create|build|code|develop)", re.I)),
    (Intent.EXTRACT, re.compile(r"(extract|get|pull|scrape|download)", re.I)),
)

_ENTITY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(javascript|typescript|python|react|node\.js|angular|vue|docker|"
        r"kubernetes|aws|azure|git|github)\b",
        re.I,
    ),
    re.compile(
        r"\b(function|class|method|api|framework|library|package|module|component)\b",
        re.I,
    ),
    re.compile(r"\b(google|microsoft|amazon|facebook|twitter|youtube|github)\b", re.I),
)

_CONSTRAINT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"language:\s*[a-zA-Z]+", re.I),
    re.compile(r"\b(?:last|past|recent|within)\s+\d+\s+(?:day|week|month|year)s?\b", re.I),
    re.compile(r"\b\d+\s+(?:result|item|example)s?\b", re.I),
)

_QUERY_TYPE_PATTERNS: dict[QueryType, re.Pattern[str]] = {
    QueryType.TECHNICAL: re.compile(
        r"(code|programming|algorithm|implementation|api|framework|library)", re.I
    ),
    QueryType.CURRENT_EVENTS: re.compile(r"(news|latest|recent|update|current)", re.I),
    QueryType.GENERAL_KNOWLEDGE: re.compile(
        r"(what is|how does|explain|define|meaning of)", re.I
    ),
    QueryType.COMPARISON: re.compile(r"(compare|versus|vs|difference between|better)", re.I),
    QueryType.IMPLEMENTATION: re.compile(r"(implement|create|build|develop|code)", re.I),
    QueryType.CONTENT_EXTRACTION: re.compile(r"(extract|scrape|crawl|content from)", re.I),
    QueryType.VIDEO_CONTENT: re.compile(r"(video|youtube|watch|stream)", re.I),
    QueryType.ACADEMIC: re.compile(r"(paper|research|study|journal|arxiv|theorem)", re.I),
}


# -- Pattern helpers ---------------------------------------------------------


def extract_urls(query: str) -> tuple[str, ...]:
    """Return every ``http(s)://`` URL in *query*, in order of appearance."""
    return tuple(_URL_RE.findall(query))


def extract_media_links(query: str) -> tuple[str, ...]:
    """Return every YouTube watch or short link in *query*."""
    return tuple(m.group(0) for m in _MEDIA_RE.finditer(query))


def media_id(link: str) -> str | None:
    """Video id of a YouTube link (the ``v=`` value or the youtu.be path)."""
    match = _MEDIA_RE.search(link)
    return match.group(1) if match else None


def _unique(items: list[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        key = item.lower()
        if key not in seen:
            seen.add(key)
            out.append(item)
    return tuple(out)


def detect_intent(query: str) -> Intent:
    for intent, pattern in _INTENT_PATTERNS:
        if pattern.search(query):
            return intent
    return Intent.SEARCH


def detect_entities(query: str) -> tuple[str, ...]:
    found: list[str] = []
    for pattern in _ENTITY_PATTERNS:
        found.extend(m.group(0) for m in pattern.finditer(query))
    return _unique(found)


def detect_constraints(query: str) -> tuple[str, ...]:
    found: list[str] = []
    for pattern in _CONSTRAINT_PATTERNS:
        found.extend(m.group(0) for m in pattern.finditer(query))
    return _unique(found)


def detect_query_types(query: str) -> tuple[QueryType, ...]:
    return tuple(qt for qt, pattern in _QUERY_TYPE_PATTERNS.items() if pattern.search(query))


def heuristic_analysis(query: str, **metadata: Any) -> QueryAnalysis:
    """Deterministic keyword-based analysis used when reasoning fails."""
    return QueryAnalysis(
        original_query=query,
        intent=detect_intent(query),
        entities=detect_entities(query),
        constraints=detect_constraints(query),
        query_types=detect_query_types(query),
        extracted_urls=extract_urls(query),
        media_links=extract_media_links(query),
        confidence=FALLBACK_CONFIDENCE,
        metadata={"method": "heuristic", **metadata},
    )


# -- Structured output schema ------------------------------------------------


class QueryAnalysisOutput(BaseModel):
    """Structured output schema for query analysis."""

    intent: Literal["search", "explain", "compare", "implement", "extract"] = Field(
        default="search", description="Primary intent of the query"
    )
    entities: list[str] = Field(
        default_factory=list, description="Named things the query is about"
    )
    query_types: list[str] = Field(
        default_factory=list,
        description=(
            "Zero or more of: technical, current_events, general_knowledge, "
            "comparison, implementation, content_extraction, video_content, academic"
        ),
    )
    constraints: list[str] = Field(
        default_factory=list,
        description="Explicit restrictions such as time ranges, languages or counts",
    )


# -- Prompt ------------------------------------------------------------------

_ANALYSIS_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You extract structured information from search queries. "
            "Identify the primary intent, the entities mentioned, the query "
            "types that apply and any explicit constraints.",
        ),
        (
            "human",
            "Analyze this search query:\n\n"
            'Query: "{query}"\n\n'
            "Intent is one of: search, explain, compare, implement, extract.\n"
            "Query types are any of: technical, current_events, "
            "general_knowledge, comparison, implementation, "
            "content_extraction, video_content, academic.",
        ),
    ]
)


# -- QueryAnalyzer -----------------------------------------------------------


class QueryAnalyzer:
    """Turn raw query text into a :class:`QueryAnalysis`.

    Parameters
    ----------
    model:
        A LangChain chat model.
    llm_timeout:
        Optional timeout in seconds for the reasoning call.
    prompt:
        Optional custom ``ChatPromptTemplate`` taking a ``query`` variable.
    """

    def __init__(
        self,
        model: BaseChatModel,
        llm_timeout: float | None = None,
        prompt: ChatPromptTemplate | None = None,
    ) -> None:
        self.model = model
        self.llm_timeout = llm_timeout
        self._prompt = prompt or _ANALYSIS_PROMPT
        self._chain = self._build_chain()

    def _build_chain(self) -> Any:
        return self._prompt | self.model.with_structured_output(QueryAnalysisOutput)

    async def analyze(self, query: str) -> QueryAnalysis:
        """Analyze *query*.  Never raises."""
        try:
            result: QueryAnalysisOutput = await ainvoke_chain(
                self._chain,
                {"query": query},
                timeout=self.llm_timeout,
                stage="query_analysis",
            )
            return self._from_output(query, result)
        except Exception as exc:
            logger.warning("QueryAnalyzer: falling back to heuristics: %s", exc)
            return heuristic_analysis(query, **describe_error(exc))

    @staticmethod
    def _from_output(query: str, result: QueryAnalysisOutput) -> QueryAnalysis:
        known = {qt.value for qt in QueryType}
        types = tuple(QueryType(t) for t in dict.fromkeys(result.query_types) if t in known)
        entities = _unique([e for e in result.entities if e.strip()])
        constraints = _unique([c for c in result.constraints if c.strip()])

        confidence = BASE_CONFIDENCE
        confidence += min(len(entities) * 0.05, 0.1)
        confidence += min(len(types) * 0.05, 0.1)
        confidence += min(len(constraints) * 0.05, 0.1)

        return QueryAnalysis(
            original_query=query,
            intent=Intent(result.intent),
            entities=entities,
            constraints=constraints,
            query_types=types or detect_query_types(query),
            extracted_urls=extract_urls(query),
            media_links=extract_media_links(query),
            confidence=min(confidence, 1.0),
            metadata={"method": "llm"},
        )
