"""Wikipedia search via the MediaWiki action API."""

from __future__ import annotations

from typing import Any

from deep_research.tools.base import CompatibilityMetadata, DemoCommand, ToolDescriptor
from deep_research.tools.http import HttpResearchTool

WIKIPEDIA_DESCRIPTOR = ToolDescriptor(
    id="wikipedia_search",
    name="Wikipedia Search",
    description="Search Wikipedia articles and retrieve their introductory extracts",
    capabilities=("encyclopedia", "general_knowledge", "factual_information"),
    input_schema={
        "query": "Search query string",
        "limit": "Maximum number of results (default: 5)",
        "language": "Wikipedia language edition (default: en)",
    },
    output_description="List of Wikipedia articles with extracts and URLs",
    limitations=(
        "Content is community-edited and may be outdated",
        "Coverage depends on the language edition",
    ),
    best_practices=(
        "Use specific search terms",
        "Verify critical facts with primary sources",
    ),
    demo_commands=(
        DemoCommand('{"query": "quantum physics"}', "Articles about quantum physics"),
    ),
    compatibility=CompatibilityMetadata(
        query_types={
            "general_knowledge": 0.9,
            "academic": 0.5,
            "technical": 0.4,
            "comparison": 0.4,
        },
        patterns=(
            "what is", "who is", "define", "explain", "wikipedia",
            "meaning", "encyclopedia", "information about", "history of",
        ),
        url_compatible=False,
        entity_types=("person", "location", "organization", "concept", "event"),
    ),
)


class WikipediaSearchTool(HttpResearchTool):
    """Encyclopedia lookup returning one record per matching article."""

    descriptor = WIKIPEDIA_DESCRIPTOR
    default_confidence = 0.9

    async def _search(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        language = str(params.get("language") or "en")
        limit = int(params.get("limit") or params.get("max_results") or 5)
        response = await self._get(
            f"https://{language}.wikipedia.org/w/api.php",
            params={
                "action": "query",
                "generator": "search",
                "gsrsearch": query,
                "gsrlimit": limit,
                "prop": "extracts|info",
                "exintro": 1,
                "explaintext": 1,
                "inprop": "url",
                "format": "json",
            },
        )
        body = response.json()
        pages = (body.get("query") or {}).get("pages") or {}
        ordered = sorted(pages.values(), key=lambda p: p.get("index", 0))
        return [
            {
                "title": page.get("title"),
                "url": page.get("fullurl"),
                "extract": page.get("extract", ""),
                "pageid": page.get("pageid"),
                "last_modified": page.get("touched"),
            }
            for page in ordered
        ]
