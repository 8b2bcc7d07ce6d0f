"""Command-line interface for deep-research.

Provides subcommands for running a research query and listing the tool
catalog.  Provider packages are imported lazily so that
``deep-research tools`` works without any chat-model extra installed.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    deep-research = "deep_research.cli:main"

Usage examples::

    deep-research run "What is the capital of France?" --depth 2
    deep-research run "compare asyncio and trio" --provider openai --format json
    deep-research tools
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

import httpx
from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="deep-research",
        description="Iterative multi-source research with cited answers.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Research a query.",
        description="Run the research loop for QUERY and print the cited answer.",
    )
    run_parser.add_argument("query", type=str, help="The research question.")
    run_parser.add_argument(
        "--depth",
        type=int,
        default=3,
        help="Maximum number of research rounds, 1-5. (default: 3)",
    )
    run_parser.add_argument(
        "--provider",
        type=str,
        default="anthropic",
        choices=["anthropic", "openai"],
        help="Chat model provider. (default: anthropic)",
    )
    run_parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model name.  Defaults to the provider's default model.",
    )
    run_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or YAML config file.  Defaults to DEEP_RESEARCH_* env vars.",
    )
    run_parser.add_argument(
        "--format",
        type=str,
        default="markdown",
        choices=["markdown", "json"],
        help="Output format. (default: markdown)",
    )
    run_parser.add_argument(
        "--max-sources",
        type=int,
        default=10,
        help="Sources shown in markdown output. (default: 10)",
    )

    # -- tools -------------------------------------------------------------
    subparsers.add_parser(
        "tools",
        help="List the registered tools.",
        description="Show the built-in tool catalog in tie-break order.",
    )

    return parser


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_run(args: argparse.Namespace) -> int:
    """Handle the ``run`` subcommand."""
    from deep_research.infrastructure.cache import InMemoryResultCache
    from deep_research.infrastructure.config import (
        ResearchConfig,
        ToolCredentials,
        load_config,
    )
    from deep_research.infrastructure.llm import create_chat_model
    from deep_research.orchestrator import ResearchOrchestrator
    from deep_research.presentation.console import ResearchConsole
    from deep_research.tools.catalog import default_registry

    config = load_config(args.config) if args.config else ResearchConfig.from_env()
    model = create_chat_model(args.provider, args.model)
    credentials = ToolCredentials.from_env()
    logger.debug("Using %s with %r", args.provider, credentials)

    async def _run() -> Any:
        async with httpx.AsyncClient(timeout=config.tool_timeout) as client:
            orchestrator = ResearchOrchestrator(
                model,
                registry=default_registry(credentials, client=client),
                config=config,
                cache=InMemoryResultCache(),
            )
            return await orchestrator.research(args.query, args.depth)

    result = asyncio.run(_run())

    console = ResearchConsole()
    if args.format == "json":
        console.print_json(result)
    else:
        console.print_result(result, include_metadata=True, max_sources=args.max_sources)
    return 0


def _cmd_tools(args: argparse.Namespace) -> int:
    """Handle the ``tools`` subcommand."""
    from deep_research.infrastructure.config import ToolCredentials
    from deep_research.presentation.console import ResearchConsole
    from deep_research.tools.catalog import default_registry

    ResearchConsole().print_tools(default_registry(ToolCredentials.from_env()))
    return 0


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from deep_research import __version__
        print(f"deep-research {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _configure_logging(args.log_level)

    handlers: dict[str, Any] = {
        "run": _cmd_run,
        "tools": _cmd_tools,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
