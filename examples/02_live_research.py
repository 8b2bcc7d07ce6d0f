#!/usr/bin/env python3
"""Example 02: live research against the built-in tool catalog.

Demonstrates:
- ``create_chat_model()`` with a real provider
- ``default_registry()`` sharing one ``httpx.AsyncClient``
- An in-memory result cache in front of the tools

Requires ``pip install -e ".[anthropic]"`` and ``ANTHROPIC_API_KEY``.
``BRAVE_API_KEY`` enables web search; without it that tool reports
missing credentials and the others carry the run.

Run:
    PYTHONPATH=src python examples/02_live_research.py "How does HTTP/3 differ from HTTP/2?"
"""

from __future__ import annotations

import asyncio
import logging
import sys

import httpx

from deep_research import ResearchOrchestrator, create_chat_model, default_registry
from deep_research.infrastructure.cache import InMemoryResultCache
from deep_research.infrastructure.config import ResearchConfig
from deep_research.presentation import ResearchConsole


async def main(query: str) -> None:
    config = ResearchConfig.from_env()
    async with httpx.AsyncClient(timeout=config.tool_timeout) as client:
        orchestrator = ResearchOrchestrator(
            create_chat_model("anthropic"),
            registry=default_registry(client=client),
            config=config,
            cache=InMemoryResultCache(),
        )
        result = await orchestrator.research(query, depth=2)
    ResearchConsole().print_result(result, include_metadata=True, max_sources=8)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(" ".join(sys.argv[1:]) or "What is the capital of France?"))
