"""Tool registry for the research orchestration engine.

An ordered catalog of :class:`~deep_research.tools.base.ResearchTool`
instances keyed by tool id.  Declaration order matters: it is the
tie-breaker when two tools receive the same relevance score.

The registry is built once at process start and only read afterwards; the
orchestrator never mutates it during a run, so one instance can be shared by
concurrent research requests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deep_research.tools.base import ResearchTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Ordered mapping from tool id to tool implementation.

    Usage::

        registry = ToolRegistry([WikipediaSearchTool(), ArxivSearchTool()])
        registry.register(my_tool)
        tool = registry.get("wikipedia_search")
    """

    def __init__(self, tools: Iterable[ResearchTool] = ()) -> None:
        self._tools: dict[str, ResearchTool] = {}
        for tool in tools:
            self.register(tool)

    # ------------------------------------------------------------------ #
    #  Registration                                                       #
    # ------------------------------------------------------------------ #

    def register(self, tool: ResearchTool, *, overwrite: bool = False) -> ResearchTool:
        """Add *tool* under its descriptor id.

        Raises ``ValueError`` on a duplicate id unless ``overwrite=True``;
        an overwritten tool keeps its original position.
        """
        tool_id = tool.id
        if not overwrite and tool_id in self._tools:
            raise ValueError(
                f"Tool '{tool_id}' is already registered as "
                f"{self._tools[tool_id]!r}. Pass overwrite=True to replace."
            )
        self._tools[tool_id] = tool
        logger.debug("Registered tool %s: %r", tool_id, tool)
        return tool

    def unregister(self, tool_id: str) -> ResearchTool:
        """Remove and return the tool. Raises ``KeyError`` if missing."""
        try:
            return self._tools.pop(tool_id)
        except KeyError:
            raise KeyError(f"Cannot unregister '{tool_id}': not found.") from None

    # ------------------------------------------------------------------ #
    #  Lookup                                                              #
    # ------------------------------------------------------------------ #

    def get(self, tool_id: str) -> ResearchTool:
        """Return the tool registered under *tool_id*.

        Raises ``KeyError`` if not found.
        """
        try:
            return self._tools[tool_id]
        except KeyError:
            raise KeyError(
                f"Tool '{tool_id}' not registered. Available: {self.ids()}"
            ) from None

    def get_or_none(self, tool_id: str) -> ResearchTool | None:
        return self._tools.get(tool_id)

    def has(self, tool_id: str) -> bool:
        return tool_id in self._tools

    # ------------------------------------------------------------------ #
    #  Introspection                                                       #
    # ------------------------------------------------------------------ #

    def ids(self) -> list[str]:
        """Tool ids in declaration order."""
        return list(self._tools.keys())

    def tools(self) -> list[ResearchTool]:
        """Tools in declaration order."""
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ResearchTool]:
        return iter(list(self._tools.values()))

    def __contains__(self, tool_id: object) -> bool:
        return isinstance(tool_id, str) and tool_id in self._tools

    def __repr__(self) -> str:
        return f"<ToolRegistry [{', '.join(self._tools)}]>"
