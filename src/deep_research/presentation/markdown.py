"""Markdown rendering of research results."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from deep_research.domain.entities import ResearchResult
from deep_research.domain.values import Source

_CITATION_RE = re.compile(r"\[(\d+(?:,\s*\d+)*)\]")


def confidence_band(confidence: float) -> str:
    """``high`` (>= 0.8), ``moderate`` (>= 0.5) or ``low``."""
    if confidence >= 0.8:
        return "high"
    if confidence >= 0.5:
        return "moderate"
    return "low"


def normalize_citations(text: str) -> str:
    """Rewrite ``[1, 2 ,3]`` style markers as ``[1,2,3]``."""
    return _CITATION_RE.sub(
        lambda m: "[" + ",".join(n.strip() for n in m.group(1).split(",")) + "]",
        text,
    )


def format_header(result: ResearchResult) -> str:
    band = confidence_band(result.confidence)
    return f"# Research Results\n*{band.capitalize()} confidence ({result.confidence:.2f})*"


def format_source(source: Source) -> str:
    parts = [f"[{source.id}] {source.tool}"]
    if source.title:
        parts.append(f"**{source.title}**")
    if source.url:
        parts.append(f"[Link]({source.url})")
    description = source.metadata.get("description")
    if description:
        parts.append(str(description))
    return "- " + " - ".join(parts)


def format_sources(sources: Sequence[Source], max_sources: int = 5) -> str:
    if not sources:
        return ""
    lines = [format_source(s) for s in sources[:max_sources]]
    if len(sources) > max_sources:
        lines.append(f"*...and {len(sources) - max_sources} more sources*")
    return "## Sources\n" + "\n".join(lines)


def format_metadata(metadata: Mapping[str, Any]) -> str:
    if not metadata:
        return ""
    items = [
        f"**Time**: {float(metadata.get('execution_time', 0.0)):.2f}s",
        f"**Iterations**: {metadata.get('iterations', 0)}",
        f"**Tools**: {', '.join(metadata.get('tools_used', [])) or 'none'}",
        f"**Query Types**: {', '.join(metadata.get('query_types', [])) or 'none'}",
    ]
    if metadata.get("stop_reason"):
        items.append(f"**Stop Reason**: {metadata['stop_reason']}")
    return "## Metadata\n" + "\n".join(items)


def format_research_result(
    result: ResearchResult,
    include_metadata: bool = False,
    max_sources: int = 5,
) -> str:
    """Render *result* as a markdown document.

    Parameters
    ----------
    result:
        The research result to render.
    include_metadata:
        Append a ``## Metadata`` section.
    max_sources:
        Sources beyond this are summarised as "...and k more sources".
    """
    sections = [
        format_header(result),
        normalize_citations(result.answer),
        format_sources(result.sources, max_sources),
        format_metadata(result.metadata) if include_metadata else "",
    ]
    return "\n\n".join(s for s in sections if s)
