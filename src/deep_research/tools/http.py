"""Shared plumbing for tools backed by an HTTP API.

Subclasses implement :meth:`HttpResearchTool._search` and receive a
validated query.  Upstream 4xx/5xx replies and malformed bodies become
``success=False`` results; transport errors (connection refused, read
timeout) propagate so the execution layer can retry them.
"""

from __future__ import annotations

import logging
import time
from abc import abstractmethod
from typing import Any

import httpx

from deep_research.domain.entities import ToolResult
from deep_research.tools.base import ResearchTool

logger = logging.getLogger(__name__)

USER_AGENT = "deep-research/0.3 (+https://pypi.org/project/deep-research/)"


class HttpResearchTool(ResearchTool):
    """Base class for HTTP-backed tools.

    Parameters
    ----------
    client:
        Optional shared ``httpx.AsyncClient``.  When omitted a short-lived
        client is opened per request.
    timeout:
        Request timeout in seconds for the short-lived client.
    """

    default_confidence: float = 0.8

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 15.0) -> None:
        self._client = client
        self._timeout = timeout

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        merged = {"User-Agent": USER_AGENT, **(headers or {})}
        if self._client is not None:
            response = await self._client.get(url, params=params, headers=merged)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params, headers=merged)
        response.raise_for_status()
        return response

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        query = str(params.get("query") or "").strip()
        if not query:
            return ToolResult.fail("Query parameter is required")

        started = time.monotonic()
        try:
            data = await self._search(query, params)
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "%s: upstream returned %d", self.id, exc.response.status_code
            )
            return ToolResult.fail(
                f"{self.name} API error: HTTP {exc.response.status_code}",
                execution_time=time.monotonic() - started,
            )
        except ValueError as exc:
            logger.warning("%s: malformed upstream reply: %s", self.id, exc)
            return ToolResult.fail(
                f"{self.name} returned a malformed reply: {exc}",
                execution_time=time.monotonic() - started,
            )

        return ToolResult.ok(
            data,
            confidence=self.default_confidence,
            execution_time=time.monotonic() - started,
        )

    @abstractmethod
    async def _search(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Query upstream and return normalised records with ``url``/``title``."""
