"""Infrastructure layer for the research orchestration engine.

Re-exports the public API surface for convenience::

    from deep_research.infrastructure import (
        ResearchConfig, ToolCredentials, load_config,
        ToolRegistry,
        ResultCache, InMemoryResultCache, make_cache_key,
    )
"""

from deep_research.infrastructure.cache import (
    InMemoryResultCache,
    ResultCache,
    make_cache_key,
)
from deep_research.infrastructure.config import (
    ResearchConfig,
    ToolCredentials,
    clamp_depth,
    load_config,
)
from deep_research.infrastructure.llm import ainvoke_chain, create_chat_model
from deep_research.infrastructure.registry import ToolRegistry

__all__ = [
    # Cache
    "InMemoryResultCache",
    "ResultCache",
    "make_cache_key",
    # Configuration
    "ResearchConfig",
    "ToolCredentials",
    "clamp_depth",
    "load_config",
    # Reasoning service
    "ainvoke_chain",
    "create_chat_model",
    # Registry
    "ToolRegistry",
]
