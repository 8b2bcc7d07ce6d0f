"""Heuristic confidence scoring of a synthesized answer.

The score is a fixed-weight blend computed over the successful results::

    confidence = 0.4 * source + 0.4 * content + 0.2 * citation

* **source** -- mean per-result confidence (0.5 when a result has none)
  blended with URL and tool diversity.
* **content** -- structure 0.3, formatting 0.2, quality indicators 0.2 and
  coverage 0.3 of the answer text.
* **citation** -- density of citation-like markers per hundred words.

The breakdown is attached to the first successful result's metadata under
``confidence_calculation`` for debugging.  Nothing reads it back.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import asdict, dataclass

import numpy as np

from deep_research.domain.entities import ToolResult
from deep_research.domain.enums import Intent, QueryType
from deep_research.domain.values import QueryAnalysis

logger = logging.getLogger(__name__)

DEFAULT_RESULT_CONFIDENCE = 0.5
DEFAULT_COVERAGE = 0.7

_BOLD_RE = re.compile(r"\*\*[^*]+\*\*")
_HEADER_RE = re.compile(r"(?:^|\n)#{1,3}\s+[^#\n]+")
_SECTION_RE = re.compile(r"(?:^|\n)###?\s+[^#\n]+")
_LONG_SECTION_RE = re.compile(r"(?:^|\n)###?\s+[^#\n]{10,}")
_LIST_RE = re.compile(r"(?:^|\n)\s*[-*]\s+|\d+\.\s+", re.M)
_BROKEN_FORMAT_RE = re.compile(r"(#{1,3}\s*$|\*\*\s*\*\*)", re.M)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")

_CITATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\[(\d+(?:,\s*\d+)*)\]"),
    re.compile(r"\[([a-zA-Z][^[\]]*)\]"),
    re.compile(r"\(([^()]*\d{4}[^()]*)\)"),
    re.compile(r"\[Source\]"),
    re.compile(r"\[\d+\]:"),
)

_QUERY_TYPE_CUES: dict[QueryType, re.Pattern[str]] = {
    QueryType.COMPARISON: re.compile(r"compar|versus|vs\.|better|worse|differ", re.I),
    QueryType.GENERAL_KNOWLEDGE: re.compile(r"\b(is|are|was|were|fact|specifically)\b", re.I),
    QueryType.IMPLEMENTATION: re.compile(r"\b(step|guide|how to|process|method)\b", re.I),
}

_INTENT_CUES: dict[Intent, re.Pattern[str]] = {
    Intent.EXPLAIN: re.compile(r"\b(because|therefore|thus|hence|explain|reason)\b", re.I),
    Intent.COMPARE: re.compile(r"compar|versus|vs\.|better|worse|differ", re.I),
    Intent.IMPLEMENT: re.compile(r"\b(step|guide|how to|process|method|example)\b", re.I),
}


# -- sub-scores --------------------------------------------------------------


def _fraction(flags: Sequence[bool]) -> float:
    return float(np.mean(np.asarray(flags, dtype=float))) if flags else 0.0


def _paragraph_count(answer: str) -> int:
    return len(_PARAGRAPH_SPLIT_RE.split(answer))


def source_quality(results: Sequence[ToolResult]) -> float:
    if not results:
        return 0.0
    confidences = [
        r.confidence if "confidence" in r.metadata else DEFAULT_RESULT_CONFIDENCE
        for r in results
    ]
    avg_confidence = float(np.mean(confidences))
    unique_urls = {e.url for r in results for e in r.entries() if e.url}
    unique_tools = {r.tool_id for r in results if r.tool_id}
    diversity = min(len(unique_urls) / 2 + len(unique_tools) / 3, 1.0)
    return avg_confidence * 0.6 + diversity * 0.4


def structure_score(answer: str) -> float:
    return _fraction([
        bool(re.search(r"(?:^|\n)###?\s*Introduction", answer, re.I)),
        bool(re.search(r"(?:^|\n)###?\s*Conclusion", answer, re.I)),
        bool(re.search(r"(?:^|\n)###?\s*(?:Citations|References):?", answer, re.I)),
        len(_SECTION_RE.findall(answer)) >= 2,
    ])


def formatting_score(answer: str) -> float:
    return _fraction([
        len(_BOLD_RE.findall(answer)) >= 3,
        bool(_LIST_RE.search(answer)),
        len(_HEADER_RE.findall(answer)) >= 2,
        _paragraph_count(answer) >= 3,
    ])


def quality_indicator_score(answer: str) -> float:
    return _fraction([
        len(_BOLD_RE.findall(answer)) >= 5,
        _paragraph_count(answer) >= 4,
        not _BROKEN_FORMAT_RE.search(answer),
        len(_LONG_SECTION_RE.findall(answer)) >= 2,
    ])


def citation_score(answer: str) -> float:
    count = sum(len(p.findall(answer)) for p in _CITATION_PATTERNS)
    words = len(answer.split())
    return min(count / max(words // 100, 1) * 2, 1.0)


def coverage_score(answer: str, analysis: QueryAnalysis) -> float:
    lowered = answer.lower()

    if analysis.entities:
        entity_cov = _fraction([e.lower() in lowered for e in analysis.entities])
    else:
        entity_cov = DEFAULT_COVERAGE

    if analysis.query_types:
        type_cov = _fraction([
            bool(_QUERY_TYPE_CUES[qt].search(answer)) if qt in _QUERY_TYPE_CUES else True
            for qt in analysis.query_types
        ])
    else:
        type_cov = DEFAULT_COVERAGE

    cue = _INTENT_CUES.get(analysis.intent)
    intent_align = DEFAULT_COVERAGE if cue is None else float(bool(cue.search(answer)))

    return entity_cov * 0.4 + type_cov * 0.3 + intent_align * 0.3


def content_quality(answer: str, analysis: QueryAnalysis) -> float:
    return (
        structure_score(answer) * 0.3
        + formatting_score(answer) * 0.2
        + quality_indicator_score(answer) * 0.2
        + coverage_score(answer, analysis) * 0.3
    )


# -- scorer ------------------------------------------------------------------


@dataclass(frozen=True)
class ConfidenceBreakdown:
    """Final score with the three weighted components."""

    score: float = 0.0
    source_quality: float = 0.0
    content_quality: float = 0.0
    citation_quality: float = 0.0
    successful_results: int = 0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


class ConfidenceScorer:
    """Blend source, content and citation quality into one scalar.

    Parameters
    ----------
    weights:
        ``(source, content, citation)`` weights; they need not sum to one
        since the result is clipped to [0, 1].
    """

    def __init__(self, weights: tuple[float, float, float] = (0.4, 0.4, 0.2)) -> None:
        if any(w < 0 for w in weights):
            raise ValueError(f"weights must be non-negative, got {weights}")
        self.weights = np.asarray(weights, dtype=float)

    def score(
        self,
        results: Sequence[ToolResult],
        analysis: QueryAnalysis,
        answer: str,
    ) -> ConfidenceBreakdown:
        successful = [r for r in results if r.success]
        if not successful:
            return ConfidenceBreakdown()

        components = np.asarray([
            source_quality(successful),
            content_quality(answer, analysis),
            citation_score(answer),
        ])
        total = float(np.clip(components @ self.weights, 0.0, 1.0))
        breakdown = ConfidenceBreakdown(
            score=total,
            source_quality=float(components[0]),
            content_quality=float(components[1]),
            citation_quality=float(components[2]),
            successful_results=len(successful),
        )
        successful[0].metadata["confidence_calculation"] = breakdown.to_dict()
        logger.debug("Confidence %.3f from %s", total, breakdown)
        return breakdown
