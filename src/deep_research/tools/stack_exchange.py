"""Stack Exchange (Stack Overflow) question search."""

from __future__ import annotations

import html
from typing import Any

import httpx

from deep_research.tools.base import CompatibilityMetadata, DemoCommand, ToolDescriptor
from deep_research.tools.http import HttpResearchTool

STACK_EXCHANGE_DESCRIPTOR = ToolDescriptor(
    id="stack_exchange_search",
    name="Stack Exchange Search",
    description=(
        "Search Stack Exchange network sites (primarily Stack Overflow) for "
        "technical questions and answers"
    ),
    capabilities=("technical_qa", "programming_help", "developer_knowledge"),
    input_schema={
        "query": "Search query string",
        "max_results": "Maximum number of results (default: 10)",
        "site": "Stack Exchange site (default: stackoverflow)",
        "tagged": "Optional semicolon separated list of tags",
    },
    output_description="List of questions with vote counts, answer status and links",
    limitations=("API quota limits apply",),
    best_practices=("Include relevant tags", "Use specific technical terms"),
    demo_commands=(
        DemoCommand('{"query": "python asyncio gather", "tagged": "python"}', "asyncio questions"),
    ),
    compatibility=CompatibilityMetadata(
        query_types={
            "technical": 0.9,
            "implementation": 0.9,
            "comparison": 0.4,
        },
        patterns=(
            "how to", "error", "problem", "issue", "debug",
            "stackoverflow", "stack overflow", "solution",
            "example", "exception",
        ),
        url_compatible=False,
        entity_types=("programming_language", "framework", "library", "error"),
    ),
)


class StackExchangeSearchTool(HttpResearchTool):
    """Q&A search returning one record per question."""

    descriptor = STACK_EXCHANGE_DESCRIPTOR
    default_confidence = 0.9

    def __init__(
        self,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key

    async def _search(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        request: dict[str, Any] = {
            "q": query,
            "site": str(params.get("site") or "stackoverflow"),
            "pagesize": int(params.get("max_results") or 10),
            "sort": "relevance",
            "order": "desc",
        }
        if params.get("tagged"):
            request["tagged"] = str(params["tagged"])
        if self._api_key:
            request["key"] = self._api_key

        response = await self._get(
            "https://api.stackexchange.com/2.3/search/advanced", params=request
        )
        items = response.json().get("items") or []
        return [
            {
                "title": html.unescape(item.get("title", "")),
                "url": item.get("link"),
                "score": item.get("score", 0),
                "is_answered": item.get("is_answered", False),
                "answer_count": item.get("answer_count", 0),
                "tags": item.get("tags", []),
            }
            for item in items
        ]
