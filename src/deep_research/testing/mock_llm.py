"""Mock chat model for testing and examples.

Provides a ``MockResearchChatModel`` that supports ``with_structured_output``
by returning scripted replies keyed by the output schema's class name, and
plain text replies for free-text chains.  Works with every stage service.
"""

from __future__ import annotations

import asyncio
from typing import Any

from langchain_core.callbacks import CallbackManagerForLLMRun
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from langchain_core.runnables import RunnableSerializable
from pydantic import BaseModel, ConfigDict


def _next_reply(queue: list[Any]) -> Any:
    """Pop the next reply; the last one is repeated forever."""
    return queue.pop(0) if len(queue) > 1 else queue[0]


class _ScriptedStructuredRunnable(RunnableSerializable):
    """Returns the scripted reply for one schema on each call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    owner: Any
    schema_type: Any

    def invoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any:
        name = getattr(self.schema_type, "__name__", str(self.schema_type))
        self.owner.calls.append(name)
        if self.owner.fail_all:
            raise RuntimeError(f"scripted failure for {name}")

        queue = self.owner.structured_responses.get(name)
        if not queue:
            raise RuntimeError(f"no scripted reply for {name}")
        reply = _next_reply(queue)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return self.schema_type.model_validate(reply)
        return reply

    async def ainvoke(self, input: Any, config: Any = None, **kwargs: Any) -> Any:
        name = getattr(self.schema_type, "__name__", str(self.schema_type))
        delay = self.owner.latency.get(name, 0.0)
        if delay:
            await asyncio.sleep(delay)
        return self.invoke(input, config, **kwargs)


class MockResearchChatModel(BaseChatModel):
    """A scripted chat model for the research stages.

    Usage::

        model = MockResearchChatModel(
            structured_responses={
                "ToolSelectionOutput": [{"selected_tools": ["paris"], "reasoning": ["ok"]}],
                "GapAnalysisOutput": [GapAnalysisOutput(has_gaps=False)],
            },
            text_responses=["Paris is the capital of France [1]."],
        )

    Replies for a schema are consumed in order and the last one repeats.
    A reply may be a pydantic instance, a dict validated against the
    schema, ``None`` or an exception instance to raise.  A schema with no
    script, or a text call with no text script, fails like an outage.
    ``latency`` maps a schema name to seconds an async structured call
    waits before replying.
    ``fail_all=True`` makes every call fail.  ``calls`` records the schema
    name (or ``"text"``) of every call in order.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    structured_responses: dict[str, list[Any]] = {}
    text_responses: list[Any] = []
    fail_all: bool = False
    latency: dict[str, float] = {}
    calls: list[str] = []

    @property
    def _llm_type(self) -> str:
        return "mock-research"

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: CallbackManagerForLLMRun | None = None,
        **kwargs: Any,
    ) -> ChatResult:
        self.calls.append("text")
        if self.fail_all:
            raise RuntimeError("scripted failure for text")
        if not self.text_responses:
            raise RuntimeError("no scripted text reply")
        reply = _next_reply(self.text_responses)
        if isinstance(reply, BaseException):
            raise reply
        return ChatResult(
            generations=[ChatGeneration(message=AIMessage(content=str(reply)))]
        )

    def with_structured_output(self, schema: Any, **kwargs: Any) -> Any:
        """Return a runnable that yields the scripted replies for *schema*."""
        return _ScriptedStructuredRunnable(owner=self, schema_type=schema)

    def count(self, name: str) -> int:
        """How many calls were made for schema *name* (or ``"text"``)."""
        return self.calls.count(name)
