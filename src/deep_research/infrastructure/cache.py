"""Result cache for tool executions.

The execution layer consults an optional :class:`ResultCache` before
invoking a tool.  Keys are a deterministic hash of the tool id and the
sorted parameter set; values are the JSON-ready dict form of a successful
:class:`~deep_research.domain.entities.ToolResult`.

Access is by idempotent ``get`` / ``put`` on a key.  Concurrent puts for the
same key write identical content, so no locking is needed.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 86400.0


def make_cache_key(tool_id: str, params: dict[str, Any]) -> str:
    """Return a stable cache key for ``(tool_id, params)``.

    Parameters whose value is ``None`` are ignored, and the remaining keys
    are sorted, so the key does not depend on insertion order.
    """
    filtered = {k: v for k, v in params.items() if v is not None}
    canonical = json.dumps(filtered, sort_keys=True, default=str, separators=(",", ":"))
    digest = hashlib.sha256(f"{tool_id}\x00{canonical}".encode("utf-8")).hexdigest()
    return f"{tool_id}:{digest}"


class ResultCache(ABC):
    """Abstract key-value cache with per-entry time-to-live."""

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Return the cached value, or ``None`` when absent or expired."""

    @abstractmethod
    async def put(self, key: str, value: dict[str, Any], ttl: float) -> None:
        """Store *value* under *key* for *ttl* seconds (unconditional overwrite)."""


class InMemoryResultCache(ResultCache):
    """Process-local cache with lazy expiry.

    Parameters
    ----------
    max_entries:
        When exceeded, the entry closest to expiry is evicted.
    clock:
        Time source returning seconds; injectable for tests.
    """

    def __init__(
        self,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}
        self._max_entries = max_entries
        self._clock = clock

    async def get(self, key: str) -> dict[str, Any] | None:
        item = self._entries.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            logger.debug("Cache entry expired: %s", key)
            return None
        return json.loads(json.dumps(value, default=str))

    async def put(self, key: str, value: dict[str, Any], ttl: float) -> None:
        if ttl <= 0:
            return
        self._entries[key] = (self._clock() + ttl, json.loads(json.dumps(value, default=str)))
        if len(self._entries) > self._max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            self._entries.pop(oldest, None)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
