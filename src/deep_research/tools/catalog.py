"""The default tool catalog."""

from __future__ import annotations

import httpx

from deep_research.infrastructure.config import ToolCredentials
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.tools.arxiv import ArxivSearchTool
from deep_research.tools.brave import BraveSearchTool
from deep_research.tools.stack_exchange import StackExchangeSearchTool
from deep_research.tools.wikipedia import WikipediaSearchTool


def default_registry(
    credentials: ToolCredentials | None = None,
    client: httpx.AsyncClient | None = None,
) -> ToolRegistry:
    """Build a registry with every built-in tool, in tie-break order."""
    creds = credentials or ToolCredentials.from_env()
    return ToolRegistry(
        [
            WikipediaSearchTool(client=client),
            ArxivSearchTool(client=client),
            StackExchangeSearchTool(api_key=creds.stack_exchange_key, client=client),
            BraveSearchTool(api_key=creds.brave_api_key, client=client),
        ]
    )
