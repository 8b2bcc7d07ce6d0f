"""Brave web search.  Requires a ``BRAVE_API_KEY``."""

from __future__ import annotations

from typing import Any

import httpx

from deep_research.domain.entities import ToolResult
from deep_research.tools.base import CompatibilityMetadata, DemoCommand, ToolDescriptor
from deep_research.tools.http import HttpResearchTool

BRAVE_DESCRIPTOR = ToolDescriptor(
    id="brave_search",
    name="Brave Search",
    description="Search the web using the Brave Search API",
    capabilities=("web_search", "privacy_focused", "general_knowledge"),
    input_schema={
        "query": "Search query string",
        "max_results": "Maximum number of results to return (default: 10)",
    },
    output_description="List of search results with title, URL and description",
    limitations=("Rate limited by API key", "Maximum 20 results per request"),
    best_practices=("Use specific search terms", "Include relevant keywords"),
    demo_commands=(
        DemoCommand('{"query": "python packaging best practices"}', "General web search"),
    ),
    compatibility=CompatibilityMetadata(
        query_types={
            "general_knowledge": 0.8,
            "current_events": 0.8,
            "technical": 0.6,
            "comparison": 0.6,
            "content_extraction": 0.3,
        },
        patterns=(
            "search", "find", "look up", "what is", "how to",
            "where", "when", "who", "why", "latest", "news",
        ),
        url_compatible=False,
        entity_types=("person", "organization", "location", "technology", "concept"),
    ),
)


class BraveSearchTool(HttpResearchTool):
    """General web search returning one record per hit."""

    descriptor = BRAVE_DESCRIPTOR
    default_confidence = 0.8

    def __init__(
        self,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        if not self._api_key:
            return ToolResult.fail("Brave Search: missing credentials (BRAVE_API_KEY)")
        return await super().execute(params)

    async def _search(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        count = min(int(params.get("max_results") or 10), 20)
        response = await self._get(
            "https://api.search.brave.com/res/v1/web/search",
            params={"q": query, "count": count},
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": self._api_key,
            },
        )
        hits = (response.json().get("web") or {}).get("results") or []
        return [
            {
                "title": hit.get("title"),
                "url": hit.get("url"),
                "description": hit.get("description", ""),
                "age": hit.get("age"),
            }
            for hit in hits
        ]
