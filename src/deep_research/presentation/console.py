"""Rich console output for the command line."""

from __future__ import annotations

import json
import sys
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from deep_research.domain.entities import ResearchResult
from deep_research.infrastructure.registry import ToolRegistry
from deep_research.presentation.markdown import format_research_result


class ResearchConsole:
    """Console presentation of research results and the tool catalog.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    """

    def __init__(self, file: Any = None) -> None:
        self._file = file or sys.stdout
        self._console = Console(file=self._file)

    def print_result(
        self,
        result: ResearchResult,
        include_metadata: bool = True,
        max_sources: int = 5,
    ) -> None:
        text = format_research_result(
            result, include_metadata=include_metadata, max_sources=max_sources
        )
        self._console.print(Markdown(text))

    def print_json(self, result: ResearchResult) -> None:
        # plain write keeps the output machine-readable
        self._file.write(json.dumps(result.to_dict(), indent=2, default=str) + "\n")

    def print_tools(self, registry: ToolRegistry) -> None:
        table = Table(title="Registered Tools", show_header=True, header_style="bold cyan")
        table.add_column("Id", style="bold", no_wrap=True)
        table.add_column("Name")
        table.add_column("Capabilities")
        table.add_column("Best For")
        for tool in registry:
            compat = tool.descriptor.compatibility
            best_for = ", ".join(
                f"{qt} ({weight})" for qt, weight in compat.query_types.items() if weight > 0.5
            )
            table.add_row(
                tool.id,
                tool.name,
                ", ".join(tool.descriptor.capabilities),
                best_for or "-",
            )
        self._console.print(table)

    def print_error(self, message: str) -> None:
        self._console.print(f"[bold red]Error:[/bold red] {message}")
