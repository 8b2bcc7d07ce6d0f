"""Retrieval tools.

Re-exports the tool interface and the built-in adapters::

    from deep_research.tools import ResearchTool, FunctionTool, default_registry
"""

from deep_research.tools.arxiv import ArxivSearchTool
from deep_research.tools.base import (
    CompatibilityMetadata,
    DemoCommand,
    FunctionTool,
    ResearchTool,
    ToolDescriptor,
    compatibility_score,
)
from deep_research.tools.brave import BraveSearchTool
from deep_research.tools.catalog import default_registry
from deep_research.tools.http import HttpResearchTool
from deep_research.tools.stack_exchange import StackExchangeSearchTool
from deep_research.tools.wikipedia import WikipediaSearchTool

__all__ = [
    "ArxivSearchTool",
    "BraveSearchTool",
    "CompatibilityMetadata",
    "DemoCommand",
    "FunctionTool",
    "HttpResearchTool",
    "ResearchTool",
    "StackExchangeSearchTool",
    "ToolDescriptor",
    "WikipediaSearchTool",
    "compatibility_score",
    "default_registry",
]
