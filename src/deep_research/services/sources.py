"""Citation sources and prompt-friendly renderings of tool results."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence

from deep_research.domain.entities import ToolResult
from deep_research.domain.values import Source

MAX_PROMPT_ENTRIES = 3
MAX_PROMPT_CHARS = 2000


def extract_sources(
    results: Iterable[ToolResult],
    start_id: int = 1,
    tool_names: Mapping[str, str] | None = None,
) -> list[Source]:
    """Derive one :class:`Source` per payload entry with a url or title.

    Ids are consecutive from *start_id* in result then entry order, so the
    returned list is already sorted by id.

    Parameters
    ----------
    results:
        Tool results; failures contribute nothing.
    start_id:
        Id of the first source produced.
    tool_names:
        Optional ``tool_id -> display name`` mapping for :attr:`Source.tool`.
    """
    names = tool_names or {}
    sources: list[Source] = []
    next_id = start_id
    for result in results:
        if not result.success:
            continue
        tool_id = result.tool_id
        for entry in result.entries():
            if not (entry.url or entry.title):
                continue
            metadata = dict(entry.fields)
            metadata["confidence"] = result.metadata.get("confidence")
            metadata["tool_id"] = tool_id
            sources.append(
                Source(
                    id=next_id,
                    tool=names.get(tool_id, tool_id),
                    url=entry.url,
                    title=entry.title or entry.url,
                    metadata=metadata,
                )
            )
            next_id += 1
    return sources


def render_result(result: ToolResult, max_entries: int = MAX_PROMPT_ENTRIES) -> str:
    """JSON rendering of a result's payload for prompts.

    Lists are cut to *max_entries* with a ``... (k more results)`` marker
    and the text is capped at ``MAX_PROMPT_CHARS``.
    """
    entries = result.entries()
    if not entries:
        return result.error or "(no data)"
    shown = [dict(e.fields) for e in entries[:max_entries]]
    text = json.dumps(shown[0] if len(entries) == 1 else shown, indent=2, default=str)
    if len(text) > MAX_PROMPT_CHARS:
        text = text[:MAX_PROMPT_CHARS] + "..."
    if len(entries) > max_entries:
        text += f"\n... ({len(entries) - max_entries} more results)"
    return text


def render_results(results: Sequence[ToolResult]) -> str:
    """Number *results* from 0 and render each one, for index-based prompts."""
    if not results:
        return "(none)"
    return "\n\n".join(
        f"Result {index} ({result.tool_id or 'unknown tool'}):\n{render_result(result)}"
        for index, result in enumerate(results)
    )
