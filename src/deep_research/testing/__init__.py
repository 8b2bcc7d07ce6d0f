"""Public testing utilities for deep-research.

Provides a scripted chat model and scripted tools for writing
self-contained examples and tests without API keys or network access.
"""

from deep_research.testing.mock_llm import MockResearchChatModel
from deep_research.testing.tools import FailingTool, FlakyTool, ScriptedTool, StaticTool

__all__ = [
    "FailingTool",
    "FlakyTool",
    "MockResearchChatModel",
    "ScriptedTool",
    "StaticTool",
]
