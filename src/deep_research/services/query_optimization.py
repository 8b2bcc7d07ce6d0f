"""Per-tool query rewriting.

One batched reasoning call rewrites the query for every selected tool.
Tools the reply leaves out, and every tool when the call fails, get the
original query with no extra parameters.  The first extracted URL and
media id are overlaid on top of whatever the reasoning service proposed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from deep_research.domain.values import OptimizedQuery, QueryAnalysis
from deep_research.infrastructure.llm import ainvoke_chain
from deep_research.services.query_analysis import media_id
from deep_research.tools.base import ResearchTool

logger = logging.getLogger(__name__)

# -- Structured output schema ------------------------------------------------


class ToolQuery(BaseModel):
    tool_id: str = Field(description="Id of the tool this query is for")
    query: str = Field(description="Query rewritten for this tool")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Optional extra parameters for the tool"
    )


class QueryOptimizationOutput(BaseModel):
    """Structured output schema for batched query optimization."""

    optimizations: list[ToolQuery] = Field(
        default_factory=list, description="One entry per tool"
    )


# -- Prompt ------------------------------------------------------------------

_OPTIMIZATION_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You optimize search queries for specific research tools. Return "
            "one entry per tool id with the optimized query and optional "
            "parameters.",
        ),
        (
            "human",
            "Optimize this query for each research tool:\n\n"
            'Original Query: "{query}"\n'
            "Intent: {intent}\n"
            "Query Types: {query_types}\n"
            "Entities: {entities}\n"
            "Constraints: {constraints}\n\n"
            "Tools:\n{tools_info}\n\n"
            "For each tool, return an optimized query that:\n"
            "1. Matches the tool's strengths and capabilities\n"
            "2. Preserves the original intent\n"
            "3. Includes relevant constraints\n"
            "4. Uses appropriate syntax for that tool",
        ),
    ]
)


def _describe_tool(tool: ResearchTool) -> str:
    best_for = ", ".join(
        qt for qt, weight in tool.descriptor.compatibility.query_types.items() if weight > 0.5
    )
    inputs = ", ".join(tool.descriptor.input_schema) or "query"
    return (
        f"{tool.id}:\n"
        f"Description: {tool.descriptor.description}\n"
        f"Best for: {best_for or 'general use'}\n"
        f"Parameters: {inputs}"
    )


def structural_params(analysis: QueryAnalysis) -> dict[str, str]:
    """Fields extracted by pattern matching that always win over the optimizer."""
    params: dict[str, str] = {}
    if analysis.extracted_urls:
        params["url"] = analysis.extracted_urls[0]
    for link in analysis.media_links:
        video = media_id(link)
        if video:
            params["video_id"] = video
            break
    return params


def tool_params(optimized: OptimizedQuery) -> dict[str, Any]:
    """Flatten an :class:`OptimizedQuery` into the ``execute`` parameter dict."""
    return {**optimized.params, "query": optimized.query}


# -- QueryOptimizer ----------------------------------------------------------


class QueryOptimizer:
    """Rewrite a query once per selected tool in a single reasoning call.

    Parameters
    ----------
    model:
        A LangChain chat model.
    llm_timeout:
        Optional timeout in seconds for the reasoning call.
    """

    def __init__(
        self,
        model: BaseChatModel,
        llm_timeout: float | None = None,
        prompt: ChatPromptTemplate | None = None,
    ) -> None:
        self.model = model
        self.llm_timeout = llm_timeout
        self._prompt = prompt or _OPTIMIZATION_PROMPT
        self._chain = self._build_chain()

    def _build_chain(self) -> Any:
        return self._prompt | self.model.with_structured_output(QueryOptimizationOutput)

    async def optimize(
        self,
        query: str,
        analysis: QueryAnalysis,
        tools: Sequence[ResearchTool],
    ) -> dict[str, OptimizedQuery]:
        """Return ``{tool_id: OptimizedQuery}`` for every tool.  Never raises."""
        if not tools:
            return {}

        proposed: dict[str, ToolQuery] = {}
        try:
            result: QueryOptimizationOutput = await ainvoke_chain(
                self._chain,
                {
                    "query": query,
                    "intent": analysis.intent.value,
                    "query_types": ", ".join(analysis.query_type_names) or "None",
                    "entities": ", ".join(analysis.entities) or "None",
                    "constraints": ", ".join(analysis.constraints) or "None",
                    "tools_info": "\n\n".join(_describe_tool(t) for t in tools),
                },
                timeout=self.llm_timeout,
                stage="query_optimization",
            )
            wanted = {t.id for t in tools}
            for item in result.optimizations:
                if item.tool_id in wanted and item.tool_id not in proposed:
                    proposed[item.tool_id] = item
        except Exception as exc:
            logger.warning("QueryOptimizer: using the original query for all tools: %s", exc)

        overlay = structural_params(analysis)
        optimized: dict[str, OptimizedQuery] = {}
        for tool in tools:
            item = proposed.get(tool.id)
            if item is None:
                optimized[tool.id] = OptimizedQuery(query=query, params=dict(overlay))
                continue
            params = {k: v for k, v in item.params.items() if k != "query"}
            params.update(overlay)
            optimized[tool.id] = OptimizedQuery(
                query=item.query.strip() or query,
                params=params,
            )
        return optimized
