"""Domain exceptions for the research orchestration engine.

All domain-specific exceptions inherit from ``ResearchError`` so callers can
catch the full family with a single ``except`` clause when needed.  None of
them escape :func:`deep_research.orchestrator.research`; every stage converts
them into its documented fallback.
"""

from __future__ import annotations

from typing import Any


class ResearchError(Exception):
    """Base exception for all research-engine errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ToolExecutionError(ResearchError):
    """Raised when a tool invocation fails after exhausting its retries.

    The execution layer never lets this propagate; it is recorded as the
    ``last_error`` of a failed :class:`~deep_research.domain.entities.ToolResult`.
    """

    def __init__(
        self,
        message: str = "Tool execution failed",
        tool_id: str = "",
        attempts: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.tool_id = tool_id
        self.attempts = attempts


class ReasoningServiceError(ResearchError):
    """Raised when the reasoning service returns nothing usable.

    Transport failures, timeouts and schema violations are all collapsed into
    this one category by the stage that made the call.
    """

    def __init__(
        self,
        message: str = "Reasoning service call failed",
        stage: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.stage = stage


class ConfigurationError(ResearchError):
    """Raised when a config file cannot be read or has the wrong shape."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        path: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
