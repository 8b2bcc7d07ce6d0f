#!/usr/bin/env python3
"""Example 01: offline research run.

Demonstrates:
- Driving ``ResearchOrchestrator`` with a scripted chat model
- Two scripted tools and a follow-up round triggered by a gap
- Reading sources and run metadata from the ``ResearchResult``

Run:
    PYTHONPATH=src python examples/01_offline_research.py
"""

from __future__ import annotations

import asyncio

from deep_research import ResearchConfig, ResearchOrchestrator
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.presentation import format_research_result
from deep_research.testing import MockResearchChatModel, StaticTool


async def main() -> None:
    registry = ToolRegistry(
        [
            StaticTool(
                "encyclopedia",
                {"title": "Paris", "url": "https://en.wikipedia.org/wiki/Paris"},
                confidence=0.9,
                score=0.9,
                name="Encyclopedia",
            ),
            StaticTool(
                "statistics",
                {"title": "Paris population", "url": "https://example.com/paris-stats"},
                score=0.6,
                name="Statistics",
            ),
        ]
    )

    model = MockResearchChatModel(
        structured_responses={
            "QueryAnalysisOutput": [
                {"intent": "explain", "entities": ["Paris"], "query_types": ["general_knowledge"]}
            ],
            "RelevanceOutput": [{"relevant_indices": [0]}],
            "GapAnalysisOutput": [
                {"has_gaps": True, "follow_up_query": "population of Paris"},
                {"has_gaps": False},
            ],
        },
        text_responses=[
            "## Answer\nParis is the capital of France [1] and home to about "
            "two million people [2]."
        ],
    )

    orchestrator = ResearchOrchestrator(
        model, registry, ResearchConfig(max_tools_per_round=1, retry_base_delay=0.0)
    )
    result = await orchestrator.research("Tell me about Paris", depth=3)

    print("=== Offline Research ===")
    print(format_research_result(result, include_metadata=True))
    print()
    print(f"Follow-ups: {result.metadata['follow_up_queries']}")
    for entry in result.metadata["tool_selection_reasoning"]:
        print(f"  round {entry['round']}: {entry['tools']} for {entry['query']!r}")
    print()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
