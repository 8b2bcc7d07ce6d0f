"""Tests for reasoning-service helpers."""

from __future__ import annotations

import asyncio

import pytest
from langchain_core.runnables import RunnableLambda

from deep_research.domain.exceptions import ReasoningServiceError
from deep_research.infrastructure.llm import ainvoke_chain, create_chat_model, describe_error


class TestAinvokeChain:
    async def test_returns_result(self) -> None:
        chain = RunnableLambda(lambda x: x["q"].upper())
        assert await ainvoke_chain(chain, {"q": "paris"}) == "PARIS"

    async def test_empty_string_raises(self) -> None:
        chain = RunnableLambda(lambda x: "   ")
        with pytest.raises(ReasoningServiceError) as info:
            await ainvoke_chain(chain, {}, stage="synthesis")
        assert info.value.stage == "synthesis"

    async def test_none_raises(self) -> None:
        chain = RunnableLambda(lambda x: None)
        with pytest.raises(ReasoningServiceError):
            await ainvoke_chain(chain, {})

    async def test_timeout(self) -> None:
        async def slow(_: dict) -> str:
            await asyncio.sleep(1)
            return "late"

        with pytest.raises(asyncio.TimeoutError):
            await ainvoke_chain(RunnableLambda(slow), {}, timeout=0.01)


class TestDescribeError:
    def test_fields(self) -> None:
        md = describe_error(RuntimeError("down"))
        assert md == {"llm_error": True, "error_type": "RuntimeError", "error": "down"}

    def test_empty_message_uses_type(self) -> None:
        assert describe_error(asyncio.TimeoutError())["error"] == "TimeoutError"


class TestCreateChatModel:
    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown provider"):
            create_chat_model("nonexistent")
