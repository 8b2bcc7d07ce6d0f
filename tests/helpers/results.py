"""Builders for tool results used across the test suite."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from deep_research.domain.entities import ToolResult


def make_result(data: Any, tool_id: str = "tool", confidence: float = 0.8) -> ToolResult:
    """A successful result as the execution layer hands it on."""
    result = ToolResult.ok(data, confidence=confidence)
    result.metadata["tool_id"] = tool_id
    result.metadata["attempts"] = 1
    return result


def make_results(
    count: int,
    confidences: Sequence[float] | None = None,
) -> list[ToolResult]:
    """*count* distinct single-record results from tools ``tool_0`` ... ."""
    return [
        make_result(
            {"title": f"Result {i}", "url": f"https://example.com/{i}"},
            tool_id=f"tool_{i}",
            confidence=confidences[i] if confidences else 0.8,
        )
        for i in range(count)
    ]
