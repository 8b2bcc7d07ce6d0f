"""Presentation layer: markdown rendering and rich console output.

Public API
----------
- :func:`format_research_result` -- markdown document for a result
- :class:`ResearchConsole` -- rich console output used by the CLI
"""

from deep_research.presentation.console import ResearchConsole
from deep_research.presentation.markdown import (
    confidence_band,
    format_research_result,
    normalize_citations,
)

__all__ = [
    "ResearchConsole",
    "confidence_band",
    "format_research_result",
    "normalize_citations",
]
