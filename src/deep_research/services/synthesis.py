"""Answer synthesis with numbered citations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from deep_research.domain.entities import ToolResult
from deep_research.domain.values import Source
from deep_research.infrastructure.llm import ainvoke_chain
from deep_research.services.sources import render_result

logger = logging.getLogger(__name__)

_SYNTHESIS_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You synthesize research results into clear, well-structured "
            "answers with proper citations.",
        ),
        (
            "human",
            "Synthesize these research results into a comprehensive answer:\n\n"
            'Query: "{query}"\n\n'
            "Results:\n{results}\n\n"
            "Instructions:\n"
            "1. Create a well-organized response\n"
            "2. Use numbered citations [1], [2], etc. matching the source ids above\n"
            '3. Include a "Citations:" section\n'
            "4. Bold key concepts\n"
            "5. Each claim should be supported by citations\n"
            "6. Address the original query directly",
        ),
    ]
)


def no_results_answer(query: str) -> str:
    return f"No relevant results were found for: {query}"


def fallback_answer(results: Sequence[ToolResult], sources: Sequence[Source]) -> str:
    lines = [f"Unable to synthesize results. Found {len(results)} relevant results."]
    for source in sources:
        line = f"[{source.id}] {source.title or source.url}"
        if source.url and source.url != source.title:
            line += f" ({source.url})"
        lines.append(line)
    return "\n".join(lines)


def _result_blocks(results: Sequence[ToolResult], sources: Sequence[Source]) -> str:
    """Render each result under the ids of the sources it produced.

    *sources* must have been extracted from *results* in the same order.
    """
    remaining = iter(sources)
    blocks = []
    for result in results:
        cited = [
            next(remaining, None)
            for entry in result.entries()
            if entry.url or entry.title
        ]
        header = "\n".join(
            f"[{s.id}] {s.title} - {s.url or 'no url'}" for s in cited if s is not None
        )
        blocks.append(
            f"{header or '[uncited]'}\n{result.tool_id or 'tool'} output:\n{render_result(result)}"
        )
    return "\n\n".join(blocks)


class Synthesizer:
    """Merge accepted results into one cited answer.

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
        self._prompt = prompt or _SYNTHESIS_PROMPT
        self._chain = self._build_chain()

    def _build_chain(self) -> Any:
        return self._prompt | self.model | StrOutputParser()

    async def synthesize(
        self,
        query: str,
        results: Sequence[ToolResult],
        sources: Sequence[Source] = (),
    ) -> str:
        """Return answer text.  Never raises and never returns an empty string."""
        if not results:
            return no_results_answer(query)
        try:
            answer: str = await ainvoke_chain(
                self._chain,
                {"query": query, "results": _result_blocks(results, sources)},
                timeout=self.llm_timeout,
                stage="synthesis",
            )
            return answer.strip()
        except Exception as exc:
            logger.warning("Synthesis failed, using plain summary: %s", exc)
            return fallback_answer(results, sources)
