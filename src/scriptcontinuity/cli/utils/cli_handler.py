"""Unified CLI handler for standardized error handling and output."""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console

from scriptcontinuity.config import get_logger
from scriptcontinuity.exceptions import ContinuityError

logger = get_logger(__name__)


def format_json(data: Any) -> str:
    """Pretty JSON for pydantic models, dicts and lists."""
    if hasattr(data, "model_dump"):
        data = data.model_dump(by_alias=True)
    return json.dumps(data, default=str, indent=2)


class CLIHandler:
    """Unified handler for CLI commands."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize CLI handler.

        Args:
            console: Rich console for output
        """
        self.console = console or Console()

    def handle_error(
        self, error: Exception, json_output: bool = False, exit_code: int = 1
    ) -> None:
        """Handle and display errors consistently.

        Args:
            error: Exception to handle
            json_output: Whether to output JSON
            exit_code: Exit code to use
        """
        logger.error(
            "Command failed", error=str(error), error_type=type(error).__name__
        )

        if json_output:
            response = {"success": False, "error": str(error), "code": exit_code}
            print(format_json(response))
        elif isinstance(error, ContinuityError):
            self.console.print(error.format_error(), style="red", markup=False)
        else:
            self.console.print(f"[red]Error: {error}[/red]")

        raise typer.Exit(exit_code)
