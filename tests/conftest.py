"""Shared fixtures for the deep-research test suite."""

from __future__ import annotations

import pytest

from deep_research.domain.enums import Intent, QueryType
from deep_research.domain.values import QueryAnalysis
from deep_research.infrastructure.config import ResearchConfig
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.testing import MockResearchChatModel, StaticTool

PARIS = {"title": "Paris", "url": "https://example.com/paris"}


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# Value-object fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analysis() -> QueryAnalysis:
    """A general-knowledge question about France."""
    return QueryAnalysis(
        original_query="What is the capital of France?",
        intent=Intent.EXPLAIN,
        entities=("France",),
        query_types=(QueryType.GENERAL_KNOWLEDGE,),
        confidence=0.8,
    )


@pytest.fixture
def config() -> ResearchConfig:
    """Fast config: no backoff delay, short timeouts, fixed seed."""
    return ResearchConfig(
        retry_base_delay=0.0,
        tool_timeout=5.0,
        llm_timeout=5.0,
        random_seed=7,
    )


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def failing_model() -> MockResearchChatModel:
    """A reasoning service where every call fails."""
    return MockResearchChatModel(fail_all=True)


@pytest.fixture
def paris_tool() -> StaticTool:
    return StaticTool("paris_search", dict(PARIS), score=0.9, name="Paris Search")


@pytest.fixture
def paris_registry(paris_tool: StaticTool) -> ToolRegistry:
    return ToolRegistry([paris_tool])
