"""deep-research.

Iterative multi-source research orchestration: analyze a question, pick
complementary retrieval tools, run them concurrently, keep what is
relevant, follow up on gaps and synthesize a cited answer with a bounded
confidence score.  Built on LangChain chat models and a LangGraph loop.
"""

__version__ = "0.3.0"

from deep_research.domain import ResearchResult, Source, ToolResult
from deep_research.infrastructure import ResearchConfig, create_chat_model
from deep_research.orchestrator import ResearchOrchestrator, research
from deep_research.tools import FunctionTool, ResearchTool, ToolDescriptor, default_registry

__all__ = [
    "FunctionTool",
    "ResearchConfig",
    "ResearchOrchestrator",
    "ResearchResult",
    "ResearchTool",
    "Source",
    "ToolDescriptor",
    "ToolResult",
    "create_chat_model",
    "default_registry",
    "research",
]
