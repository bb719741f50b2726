"""CLI command for scriptcontinuity test-connection."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptcontinuity.cli.utils import load_settings
from scriptcontinuity.config import get_logger
from scriptcontinuity.llm import GenerativeClient

logger = get_logger(__name__)
console = Console()


async def _probe(client: GenerativeClient) -> str:
    async with client:
        return await client.test_connection()


def connection_test_command(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = None,
) -> None:
    """Send one small prompt to the configured service.

    On failure the service's own error is printed unchanged and the command
    exits with status 1.
    """
    try:
        settings = load_settings(config)
        client = GenerativeClient.from_settings(settings)
        reply = asyncio.run(_probe(client))
    except Exception as e:
        logger.error(
            "Connection test failed", error=str(e), error_type=type(e).__name__
        )
        console.print("[red]Connection failed[/red]")
        console.print(str(e), markup=False, highlight=False)
        raise typer.Exit(1) from e

    console.print(f"[green]Connected to {settings.llm_endpoint}[/green]")
    console.print(reply.strip(), markup=False, highlight=False)
