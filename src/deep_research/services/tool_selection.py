"""Tool selection: rank the catalog, let the reasoning service choose.

Every candidate is scored with its own ``relevance_score``; the ranked
list is offered to the reasoning service, which picks up to ``max_tools``
ids that complement each other.  Its reply is validated against the
candidate set.  An empty, invalid or failed reply falls back to the
top-scoring candidates.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from deep_research.domain.values import QueryAnalysis
from deep_research.infrastructure.llm import ainvoke_chain
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.tools.base import ResearchTool

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "Selected based on relevance scores (LLM selection failed)"


@dataclass(frozen=True)
class ScoredTool:
    tool: ResearchTool
    score: float


# -- Structured output schema ------------------------------------------------


class ToolSelectionOutput(BaseModel):
    """Structured output schema for tool selection."""

    selected_tools: list[str] = Field(
        default_factory=list, description="Ids of the chosen tools, best first"
    )
    reasoning: list[str] = Field(
        default_factory=list,
        description="One short justification per chosen tool, in the same order",
    )


# -- Prompt ------------------------------------------------------------------

_SELECTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You select the optimal research tools for a query. Only choose "
            "ids from the list of available tools.",
        ),
        (
            "human",
            "Select the best tools (max {max_tools}) for this query:\n"
            '"{query}"\n\n'
            "Query analysis:\n"
            "- Intent: {intent}\n"
            "- Types: {query_types}\n"
            "- Entities: {entities}\n"
            "- URLs: {urls}\n\n"
            "Requirements:\n"
            "1. Select tools that cover DIFFERENT aspects of the query\n"
            "2. Avoid tools that would return highly similar results\n"
            "3. Prioritize tools that complement each other\n"
            "4. Include at least one tool from each relevant query type if possible\n"
            "5. Balance specialized and general-purpose tools\n\n"
            "Available tools:\n{tools_info}",
        ),
    ]
)


# -- ToolSelector ------------------------------------------------------------


class ToolSelector:
    """Choose a bounded subset of registered tools for one round.

    Parameters
    ----------
    model:
        A LangChain chat model.
    registry:
        The tool catalog.  Its iteration order breaks score ties.
    llm_timeout:
        Optional timeout in seconds for the reasoning call.
    min_score:
        Tools scoring below this are not offered as candidates.
    """

    def __init__(
        self,
        model: BaseChatModel,
        registry: ToolRegistry,
        llm_timeout: float | None = None,
        min_score: float = 0.0,
        prompt: ChatPromptTemplate | None = None,
    ) -> None:
        self.model = model
        self.registry = registry
        self.llm_timeout = llm_timeout
        self.min_score = min_score
        self._prompt = prompt or _SELECTION_PROMPT
        self._chain = self._build_chain()

    def _build_chain(self) -> Any:
        return self._prompt | self.model.with_structured_output(ToolSelectionOutput)

    def rank(
        self,
        query: str,
        analysis: QueryAnalysis,
        exclude: Collection[str] = (),
    ) -> list[ScoredTool]:
        """Score every non-excluded tool, highest first.

        ``sorted`` is stable, so equal scores keep registry order.
        """
        scored = []
        for tool in self.registry:
            if tool.id in exclude:
                continue
            try:
                score = max(0.0, min(1.0, float(tool.relevance_score(query, analysis))))
            except Exception as exc:
                logger.warning("ToolSelector: scoring %s failed: %s", tool.id, exc)
                score = 0.0
            if score >= self.min_score:
                scored.append(ScoredTool(tool, score))
        return sorted(scored, key=lambda s: s.score, reverse=True)

    async def select(
        self,
        query: str,
        analysis: QueryAnalysis,
        used_tool_ids: Collection[str] = (),
        max_tools: int = 3,
    ) -> tuple[list[ResearchTool], list[str]]:
        """Return ``(tools, reasoning)``.  Never raises.

        The result holds at most *max_tools* distinct registered tools, none
        of them in *used_tool_ids*.  An empty list means the catalog is
        exhausted for this run.
        """
        ranked = self.rank(query, analysis, exclude=used_tool_ids)
        if not ranked or max_tools < 1:
            logger.info("ToolSelector: no unused candidate tools remain")
            return [], []

        try:
            result: ToolSelectionOutput = await ainvoke_chain(
                self._chain,
                {
                    "max_tools": max_tools,
                    "query": query,
                    "intent": analysis.intent.value,
                    "query_types": ", ".join(analysis.query_type_names) or "None",
                    "entities": ", ".join(analysis.entities) or "None",
                    "urls": " ".join(analysis.extracted_urls) or "None",
                    "tools_info": "\n\n".join(
                        s.tool.descriptor.summary(s.score) for s in ranked
                    ),
                },
                timeout=self.llm_timeout,
                stage="tool_selection",
            )
            tools, reasoning = self._validate(result, ranked, max_tools)
            if not tools:
                raise ValueError("reply named no valid candidate tool")
            logger.debug("ToolSelector: selected %s", [t.id for t in tools])
            return tools, reasoning
        except Exception as exc:
            logger.warning("ToolSelector: falling back to raw scores: %s", exc)
            return [s.tool for s in ranked[:max_tools]], [FALLBACK_REASONING]

    @staticmethod
    def _validate(
        result: ToolSelectionOutput,
        ranked: list[ScoredTool],
        max_tools: int,
    ) -> tuple[list[ResearchTool], list[str]]:
        candidates = {s.tool.id: s.tool for s in ranked}
        tools: list[ResearchTool] = []
        reasoning: list[str] = []
        for index, tool_id in enumerate(result.selected_tools):
            tool = candidates.get(tool_id)
            if tool is None or tool in tools:
                continue
            tools.append(tool)
            reasoning.append(
                result.reasoning[index] if index < len(result.reasoning) else ""
            )
            if len(tools) == max_tools:
                break
        return tools, reasoning
