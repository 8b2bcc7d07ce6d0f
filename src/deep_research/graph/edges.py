"""Conditional edge functions for the research LangGraph."""

from __future__ import annotations

from typing import Any, Literal


def after_select(state: dict[str, Any]) -> Literal["optimize", "synthesize"]:
    """Skip straight to synthesis when selection ended the run.

    Selection sets ``stop_reason`` when no unused tool remains or the
    deadline has passed.
    """
    if state.get("stop_reason") or not state.get("selected_tool_ids"):
        return "synthesize"
    return "optimize"


def after_assess(state: dict[str, Any]) -> Literal["select", "synthesize"]:
    """Loop back for another round unless assessment decided to stop."""
    if state.get("stop_reason"):
        return "synthesize"
    return "select"
