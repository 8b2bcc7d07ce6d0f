"""Entities for the research orchestration engine.

Unlike the value objects in :mod:`deep_research.domain.values`, these carry
mutable observability state: a :class:`ToolResult` may have diagnostic
metadata attached after it was created (the confidence breakdown), and a
:class:`ResearchResult` is the final record handed to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .values import Payload, Source, as_payload


@dataclass
class ToolResult:
    """Outcome of one tool invocation, including its retries.

    Invariant: ``success=False`` implies ``payload is None``.

    ``metadata`` carries at least ``confidence`` (in [0, 1]), ``attempts`` and
    ``tool_id`` once the execution layer has handled the result.  Anything
    else placed there is for debugging only and must not drive control flow.
    """

    success: bool
    payload: Payload | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.success and self.payload is not None:
            raise ValueError("a failed ToolResult must not carry a payload")

    # -- constructors ---------------------------------------------------------

    @classmethod
    def ok(cls, data: Any, confidence: float = 0.8, **metadata: Any) -> ToolResult:
        """Build a successful result from raw tool output."""
        metadata["confidence"] = max(0.0, min(1.0, confidence))
        return cls(success=True, payload=as_payload(data), metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> ToolResult:
        """Build a failed result carrying *error*."""
        return cls(success=False, payload=None, error=error, metadata=metadata)

    # -- accessors ------------------------------------------------------------

    @property
    def tool_id(self) -> str:
        return str(self.metadata.get("tool_id", ""))

    @property
    def confidence(self) -> float:
        value = self.metadata.get("confidence")
        if value is None:
            return 0.0
        return max(0.0, min(1.0, float(value)))

    @property
    def from_cache(self) -> bool:
        return bool(self.metadata.get("from_cache", False))

    def entries(self) -> tuple:
        """Return the payload's records (empty for failures)."""
        if self.payload is None:
            return ()
        return self.payload.entries()

    def data(self) -> Any:
        """Plain-data view of the payload, for prompts and serialisation."""
        if self.payload is None:
            return None
        return self.payload.to_data()

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data(),
            "error": self.error,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolResult:
        success = bool(data.get("success", False))
        return cls(
            success=success,
            payload=as_payload(data.get("data")) if success else None,
            error=data.get("error"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class ResearchResult:
    """Final output of a research run."""

    answer: str
    sources: list[Source] = field(default_factory=list)
    confidence: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.confidence = max(0.0, min(1.0, float(self.confidence)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [s.to_dict() for s in self.sources],
            "confidence": self.confidence,
            "metadata": dict(self.metadata),
        }
