"""arXiv search via the public Atom export API."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

from deep_research.tools.base import CompatibilityMetadata, DemoCommand, ToolDescriptor
from deep_research.tools.http import HttpResearchTool

_ATOM = "{http://www.w3.org/2005/Atom}"

ARXIV_DESCRIPTOR = ToolDescriptor(
    id="arxiv_search",
    name="arXiv Search",
    description="Search academic papers and preprints from the arXiv repository",
    capabilities=("academic_search", "research_papers", "scientific_literature"),
    input_schema={
        "query": "Search query string",
        "max_results": "Maximum number of results to return (default: 10)",
        "sort_by": "relevance, lastUpdatedDate or submittedDate (default: relevance)",
    },
    output_description="List of papers with titles, authors, abstracts and links",
    limitations=(
        "Rate limited to one request every three seconds",
        "Only covers papers submitted to arXiv",
    ),
    best_practices=(
        "Use specific scientific terms",
        "Use field prefixes such as ti: or au:",
    ),
    demo_commands=(
        DemoCommand('{"query": "quantum computing", "max_results": 5}', "Recent quantum papers"),
    ),
    compatibility=CompatibilityMetadata(
        query_types={
            "academic": 0.9,
            "technical": 0.8,
            "general_knowledge": 0.4,
        },
        patterns=(
            "research", "paper", "study", "academic", "scientific",
            "journal", "publication", "preprint", "arxiv",
            "theory", "experiment", "methodology",
        ),
        url_compatible=False,
        entity_types=("researcher", "scientific_concept", "theory", "methodology", "technology"),
    ),
)


class ArxivSearchTool(HttpResearchTool):
    """Academic search returning one record per paper."""

    descriptor = ARXIV_DESCRIPTOR
    default_confidence = 0.9

    async def _search(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        search_query = query if ":" in query else f"all:{query}"
        response = await self._get(
            "https://export.arxiv.org/api/query",
            params={
                "search_query": search_query,
                "max_results": int(params.get("max_results") or 10),
                "sortBy": str(params.get("sort_by") or "relevance"),
            },
            headers={"Accept": "application/atom+xml"},
        )
        try:
            root = ET.fromstring(response.text)
        except ET.ParseError as exc:
            raise ValueError(f"invalid Atom feed: {exc}") from exc
        return [_parse_entry(entry) for entry in root.iter(f"{_ATOM}entry")]


def _parse_entry(entry: ET.Element) -> dict[str, Any]:
    def text(tag: str) -> str:
        node = entry.find(f"{_ATOM}{tag}")
        return " ".join((node.text or "").split()) if node is not None else ""

    authors = [
        " ".join((name.text or "").split())
        for name in entry.findall(f"{_ATOM}author/{_ATOM}name")
    ]
    categories = [c.get("term", "") for c in entry.findall(f"{_ATOM}category")]
    return {
        "title": text("title"),
        "url": text("id"),
        "summary": text("summary"),
        "authors": authors,
        "published": text("published"),
        "updated": text("updated"),
        "categories": [c for c in categories if c],
    }
