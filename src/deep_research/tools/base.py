"""Tool interface for the research orchestration engine.

Every retrieval tool -- web search, encyclopedia lookup, academic search --
implements the same small contract:

* a read-only :class:`ToolDescriptor` describing what it does and which
  queries it suits,
* a pure :meth:`ResearchTool.relevance_score` in [0, 1],
* an asynchronous :meth:`ResearchTool.execute` returning a
  :class:`~deep_research.domain.entities.ToolResult`.

Tools should *return* ``success=False`` for expected failure modes (missing
credentials, upstream 4xx/5xx).  Transport errors may propagate; the
execution layer retries them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from deep_research.domain.entities import ToolResult
from deep_research.domain.values import QueryAnalysis

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompatibilityMetadata:
    """Signals used to score a tool against a query.

    Attributes
    ----------
    query_types:
        Affinity weight in [0, 1] per query type name.
    patterns:
        Keywords whose presence in the query favours this tool.
    url_compatible:
        Whether the tool can consume a URL extracted from the query.
    entity_types:
        Entity kinds this tool is good at.
    """

    query_types: Mapping[str, float] = field(default_factory=dict)
    patterns: tuple[str, ...] = ()
    url_compatible: bool = False
    entity_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class DemoCommand:
    command: str
    description: str = ""


@dataclass(frozen=True)
class ToolDescriptor:
    """Static, self-describing metadata for a tool."""

    id: str
    name: str
    description: str = ""
    capabilities: tuple[str, ...] = ()
    input_schema: Mapping[str, str] = field(default_factory=dict)
    output_description: str = ""
    limitations: tuple[str, ...] = ()
    best_practices: tuple[str, ...] = ()
    demo_commands: tuple[DemoCommand, ...] = ()
    compatibility: CompatibilityMetadata = field(default_factory=CompatibilityMetadata)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ToolDescriptor.id must not be empty")

    def summary(self, score: float | None = None) -> str:
        """Multi-line description used in reasoning-service prompts."""
        compat = self.compatibility
        lines = [f"Tool: {self.name} ({self.id})"]
        if score is not None:
            lines.append(f"  Score: {score:.2f}")
        lines.append(f"  Description: {self.description}")
        if self.capabilities:
            lines.append(f"  Capabilities: {', '.join(self.capabilities)}")
        if self.input_schema:
            inputs = ", ".join(f"{k}: {v}" for k, v in self.input_schema.items())
            lines.append(f"  Input Types: {inputs}")
        if self.output_description:
            lines.append(f"  Output Type: {self.output_description}")
        if self.limitations:
            lines.append(f"  Limitations: {', '.join(self.limitations)}")
        if compat.query_types:
            weights = ", ".join(f"{k} ({v})" for k, v in compat.query_types.items())
            lines.append(f"  Compatible Query Types: {weights}")
        if compat.patterns:
            lines.append(f"  Patterns: {', '.join(compat.patterns)}")
        lines.append(f"  URL Compatible: {'Yes' if compat.url_compatible else 'No'}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def compatibility_score(
    compat: CompatibilityMetadata,
    query: str,
    analysis: QueryAnalysis,
) -> float:
    """Score *query* against a tool's compatibility metadata.

    * +0.3 if any keyword pattern occurs in the query (case-insensitive)
    * +0.3 x the best affinity among the analysis' query types
    * +0.2 if an analysed entity matches one of the tool's entity types
    * +0.2 if the tool takes URLs and the query contained one

    The result is clamped to [0, 1].
    """
    lowered = query.lower()
    score = 0.0

    if any(p.lower() in lowered for p in compat.patterns):
        score += 0.3

    weights = [compat.query_types.get(qt.value, 0.0) for qt in analysis.query_types]
    if weights:
        score += max(weights) * 0.3

    entity_types = {e.lower() for e in compat.entity_types}
    if any(e.lower() in entity_types for e in analysis.entities):
        score += 0.2

    if compat.url_compatible and analysis.extracted_urls:
        score += 0.2

    return max(0.0, min(1.0, score))


# ---------------------------------------------------------------------------
# Tool interface
# ---------------------------------------------------------------------------

class ResearchTool(ABC):
    """Abstract base class for retrieval tools.

    Subclasses set :attr:`descriptor` and implement :meth:`execute`.  The
    default :meth:`relevance_score` uses :func:`compatibility_score`;
    override it for tools with sharper applicability rules.
    """

    descriptor: ToolDescriptor

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def name(self) -> str:
        return self.descriptor.name

    def relevance_score(self, query: str, analysis: QueryAnalysis) -> float:
        """Return how well this tool fits *query*, in [0, 1]."""
        return compatibility_score(self.descriptor.compatibility, query, analysis)

    @abstractmethod
    async def execute(self, params: dict[str, Any]) -> ToolResult:
        """Run the tool with *params* (``query`` plus tool-specific keys)."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


ToolFunction = Callable[[dict[str, Any]], Awaitable[ToolResult]]


class FunctionTool(ResearchTool):
    """Adapt an async callable into a :class:`ResearchTool`.

    Parameters
    ----------
    descriptor:
        Static metadata for the tool.
    func:
        ``async def func(params) -> ToolResult``.
    scorer:
        Optional replacement for the compatibility-based relevance score.
    """

    def __init__(
        self,
        descriptor: ToolDescriptor,
        func: ToolFunction,
        scorer: Callable[[str, QueryAnalysis], float] | None = None,
    ) -> None:
        self.descriptor = descriptor
        self._func = func
        self._scorer = scorer

    def relevance_score(self, query: str, analysis: QueryAnalysis) -> float:
        if self._scorer is None:
            return super().relevance_score(query, analysis)
        return max(0.0, min(1.0, float(self._scorer(query, analysis))))

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        return await self._func(params)
