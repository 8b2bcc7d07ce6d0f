"""Tool execution with caching, timeouts, retries and exponential backoff.

:meth:`ToolExecutor.execute_with_retry` always returns a
:class:`~deep_research.domain.entities.ToolResult`.  Only raised exceptions
and timeouts are retried; a tool that *returns* ``success=False`` has
answered and is not asked again.  Successful results are cached.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from deep_research.domain.entities import ToolResult
from deep_research.domain.exceptions import ToolExecutionError
from deep_research.infrastructure.cache import DEFAULT_CACHE_TTL, ResultCache, make_cache_key
from deep_research.tools.base import ResearchTool

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class ToolExecutor:
    """Runs tools for the research loop.

    Parameters
    ----------
    cache:
        Optional :class:`ResultCache`.  Without one every call hits the tool.
    cache_ttl:
        Lifetime of cached successes in seconds.
    retry_base_delay:
        Attempt *n* (0-based) that fails waits ``retry_base_delay * 2**n``.
    tool_timeout:
        Per-attempt timeout in seconds, ``None`` to disable.
    sleep:
        Injectable ``asyncio.sleep`` replacement for tests.
    """

    def __init__(
        self,
        cache: ResultCache | None = None,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        retry_base_delay: float = 1.0,
        tool_timeout: float | None = 30.0,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.retry_base_delay = retry_base_delay
        self.tool_timeout = tool_timeout
        self._sleep = sleep

    # -- single tool -------------------------------------------------------

    async def execute_with_retry(
        self,
        tool: ResearchTool,
        params: dict[str, Any],
        max_retries: int = 2,
    ) -> ToolResult:
        """Execute *tool* with *params*.  Never raises."""
        key = self._cache_key(tool.id, params)

        cached = await self._cache_get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", tool.id)
            cached.metadata.update(tool_id=tool.id, attempts=0, from_cache=True)
            return cached

        try:
            result = await self._run_with_retries(tool, params, max_retries)
        except ToolExecutionError as exc:
            logger.warning(
                "%s failed after %d attempts: %s", exc.tool_id, exc.attempts, exc
            )
            return ToolResult.fail(
                str(exc),
                tool_id=exc.tool_id,
                attempts=exc.attempts,
                confidence=0.0,
                **exc.details,
            )

        if result.success and key is not None:
            await self._cache_put(key, result)
        return result

    async def _run_with_retries(
        self,
        tool: ResearchTool,
        params: dict[str, Any],
        max_retries: int,
    ) -> ToolResult:
        last_exc: BaseException | None = None
        attempts = max(0, max_retries) + 1
        for attempt in range(attempts):
            try:
                result = await self._call(tool, params)
            except Exception as exc:
                last_exc = exc
                logger.debug(
                    "%s attempt %d/%d failed: %s", tool.id, attempt + 1, attempts, exc
                )
                if attempt < attempts - 1:
                    await self._sleep(self.retry_base_delay * (2 ** attempt))
                continue
            result.metadata.setdefault("tool_id", tool.id)
            result.metadata["attempts"] = attempt + 1
            return result

        raise ToolExecutionError(
            _error_message(last_exc, self.tool_timeout),
            tool_id=tool.id,
            attempts=attempts,
            details={"error_type": type(last_exc).__name__},
        ) from last_exc

    async def _call(self, tool: ResearchTool, params: dict[str, Any]) -> ToolResult:
        if self.tool_timeout is None:
            result = await tool.execute(dict(params))
        else:
            result = await asyncio.wait_for(tool.execute(dict(params)), self.tool_timeout)
        if not isinstance(result, ToolResult):
            raise TypeError(
                f"{tool.id}.execute returned {type(result).__name__}, expected ToolResult"
            )
        return result

    # -- a whole round -----------------------------------------------------

    async def execute_round(
        self,
        tools: Sequence[ResearchTool],
        params_by_tool: Mapping[str, dict[str, Any]],
        max_retries: int = 2,
    ) -> list[ToolResult]:
        """Run every tool concurrently and wait for all of them to settle."""
        return list(
            await asyncio.gather(
                *(
                    self.execute_with_retry(
                        tool, params_by_tool.get(tool.id, {}), max_retries
                    )
                    for tool in tools
                )
            )
        )

    # -- cache helpers -----------------------------------------------------

    def _cache_key(self, tool_id: str, params: dict[str, Any]) -> str | None:
        if self.cache is None:
            return None
        try:
            return make_cache_key(tool_id, params)
        except Exception as exc:
            logger.warning("Cannot build cache key for %s, skipping cache: %s", tool_id, exc)
            return None

    async def _cache_get(self, key: str | None) -> ToolResult | None:
        """Return the decoded cached result, or ``None`` on a miss.

        A read error or an undecodable entry counts as a miss.
        """
        if self.cache is None or key is None:
            return None
        try:
            cached = await self.cache.get(key)
            if cached is None:
                return None
            return ToolResult.from_dict(cached)
        except Exception as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

    async def _cache_put(self, key: str, result: ToolResult) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.put(key, result.to_dict(), self.cache_ttl)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)


def _error_message(exc: BaseException | None, timeout: float | None) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"timed out after {timeout}s"
    if exc is None:
        return "Unknown error"
    return str(exc) or type(exc).__name__
