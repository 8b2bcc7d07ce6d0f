"""Value objects for the research orchestration engine.

All types here are frozen dataclasses -- immutable, compared by value.
They describe a query, the records a tool brought back, the citations
derived from those records, and the outputs of the individual pipeline
stages.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from .enums import Intent, QueryType

# ---------------------------------------------------------------------------
# QueryAnalysis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QueryAnalysis:
    """Structured understanding of a single query.

    Created once per analysed query (the original query and every follow-up
    query) and consumed by tool scoring, query optimisation and coverage
    evaluation.  URL and media-link extraction is always pattern based, so
    ``extracted_urls`` and ``media_links`` survive a reasoning-service outage.
    """

    original_query: str
    intent: Intent = Intent.SEARCH
    entities: tuple[str, ...] = ()
    constraints: tuple[str, ...] = ()
    query_types: tuple[QueryType, ...] = ()
    extracted_urls: tuple[str, ...] = ()
    media_links: tuple[str, ...] = ()
    confidence: float = 0.5
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

    @property
    def query_type_names(self) -> list[str]:
        return [qt.value for qt in self.query_types]


# ---------------------------------------------------------------------------
# Tool payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SingleRecord:
    """One free-form record returned by a tool.

    ``url`` and ``title`` are read from the fields of the same name when
    present; everything else is opaque to the engine.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> str | None:
        value = self.fields.get("url")
        return str(value) if value else None

    @property
    def title(self) -> str | None:
        value = self.fields.get("title")
        return str(value) if value else None

    def entries(self) -> tuple[SingleRecord, ...]:
        return (self,)

    def to_data(self) -> dict[str, Any]:
        return dict(self.fields)


@dataclass(frozen=True)
class RecordList:
    """An ordered list of records returned by a tool."""

    records: tuple[SingleRecord, ...] = ()

    def entries(self) -> tuple[SingleRecord, ...]:
        return self.records

    def to_data(self) -> list[dict[str, Any]]:
        return [dict(r.fields) for r in self.records]

    def __len__(self) -> int:
        return len(self.records)


Payload = Union[SingleRecord, RecordList]


def as_payload(data: Any) -> Payload | None:
    """Coerce raw tool output into a :data:`Payload`.

    Mappings become a :class:`SingleRecord`, sequences a :class:`RecordList`
    (non-mapping items are wrapped as ``{"value": item}``), and any other
    scalar a single record under the ``"value"`` key.  ``None`` stays ``None``.
    """
    if data is None:
        return None
    if isinstance(data, (SingleRecord, RecordList)):
        return data
    if isinstance(data, Mapping):
        return SingleRecord(fields=dict(data))
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        return RecordList(records=tuple(
            item if isinstance(item, SingleRecord)
            else SingleRecord(fields=dict(item) if isinstance(item, Mapping) else {"value": item})
            for item in data
        ))
    return SingleRecord(fields={"value": data})


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Source:
    """A citation record derived from a tool result entry.

    ``id`` is unique and monotonic within one research run; citations in the
    synthesised answer refer to it as ``[id]``.
    """

    id: int
    tool: str
    url: str | None = None
    title: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tool": self.tool,
            "url": self.url,
            "title": self.title,
            "metadata": dict(self.metadata),
        }


# ---------------------------------------------------------------------------
# Stage outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptimizedQuery:
    """Per-tool rewritten query plus extra parameters."""

    query: str
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GapReport:
    """Outcome of a gap analysis pass.

    ``has_gaps`` is only ``True`` when a major aspect of the query is still
    unanswered; ``follow_up_query`` is the query for the next round.
    """

    has_gaps: bool = False
    follow_up_query: str | None = None
    explanation: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)
