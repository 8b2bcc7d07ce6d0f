"""Reasoning-service plumbing.

The reasoning service is any LangChain ``BaseChatModel``.  Stages build
chains out of a ``ChatPromptTemplate`` and either
``model.with_structured_output(Schema)`` (structured calls) or
``StrOutputParser`` (free text), then await them through
:func:`ainvoke_chain`, which applies the configured timeout and turns an
empty reply into a :class:`ReasoningServiceError`.  Callers treat every
failure the same way, whatever its cause.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from langchain_core.language_models import BaseChatModel

from deep_research.domain.exceptions import ReasoningServiceError

logger = logging.getLogger(__name__)

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o",
}


async def ainvoke_chain(
    chain: Any,
    inputs: dict[str, Any],
    *,
    timeout: float | None = None,
    stage: str = "",
) -> Any:
    """Await ``chain.ainvoke(inputs)`` with an optional timeout.

    Raises
    ------
    ReasoningServiceError
        If the chain returned ``None`` or an empty string.
    asyncio.TimeoutError
        If *timeout* elapsed.
    """
    if timeout is None:
        result = await chain.ainvoke(inputs)
    else:
        result = await asyncio.wait_for(chain.ainvoke(inputs), timeout=timeout)
    if result is None or (isinstance(result, str) and not result.strip()):
        raise ReasoningServiceError("Empty reply from reasoning service", stage=stage)
    return result


def describe_error(exc: BaseException) -> dict[str, Any]:
    """Metadata recorded whenever a stage falls back after *exc*."""
    return {
        "llm_error": True,
        "error_type": type(exc).__name__,
        "error": str(exc) or type(exc).__name__,
    }


def create_chat_model(
    provider: str,
    model: str | None = None,
    temperature: float = 0.2,
    **kwargs: Any,
) -> BaseChatModel:
    """Create a LangChain chat model by provider name.

    Provider packages are optional extras and imported lazily.

    Raises
    ------
    ValueError
        For an unknown provider name.
    """
    name = provider.lower()
    model_name = model or DEFAULT_MODELS.get(name, "")
    if name == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(model=model_name, temperature=temperature, **kwargs)
    if name == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=model_name, temperature=temperature, **kwargs)
    raise ValueError(
        f"Unknown provider {provider!r}. Available providers: "
        f"{', '.join(sorted(DEFAULT_MODELS))}"
    )
