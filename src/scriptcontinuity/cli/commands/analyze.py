"""CLI command for scriptcontinuity analyze."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from scriptcontinuity.analysis import ContinuityAnalyzer, MasterContext
from scriptcontinuity.cli.utils import CLIHandler, load_script, load_settings
from scriptcontinuity.config import ContinuitySettings, get_logger
from scriptcontinuity.llm import GenerativeClient, UsageSnapshot, UsageTracker
from scriptcontinuity.models import Scene
from scriptcontinuity.storage import ContextCache, DirectoryStore

logger = get_logger(__name__)
console = Console()


async def run_analysis(
    script_text: str,
    scenes: list[Scene],
    settings: ContinuitySettings,
    *,
    offline: bool,
    usage: UsageTracker,
    cache: ContextCache | None = None,
    force: bool = False,
    on_progress: Callable[[str, float], None] | None = None,
) -> MasterContext:
    """Run the analyzer, closing the service client afterwards."""
    client = None if offline else GenerativeClient.from_settings(settings, usage)
    analyzer = ContinuityAnalyzer(client=client, settings=settings, cache=cache)
    try:
        return await analyzer.analyze(
            script_text, scenes, on_progress=on_progress, force=force
        )
    finally:
        if client is not None:
            await client.aclose()


def _scene_label(index: int | None) -> str:
    return "-" if index is None else str(index + 1)


def _summary_table(context: MasterContext) -> Table:
    table = Table(title="Characters")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Scenes", justify="right")
    table.add_column("First", justify="right")
    table.add_column("Last", justify="right")
    for record in context.characters.values():
        presence = record.story_presence
        table.add_row(
            record.name,
            record.category.value,
            str(record.scene_count),
            _scene_label(presence.first_appearance),
            _scene_label(presence.last_appearance),
        )
    return table


def _print_usage(usage: UsageSnapshot) -> None:
    console.print(
        f"\nService calls: [bold]{usage['calls']}[/bold] "
        f"(ok {usage['successes']}, errors {usage['errors']}, "
        f"rate limited {usage['rate_limit_hits']})"
    )
    if usage["last_error"]:
        console.print(f"  Last error: {usage['last_error']}", markup=False)


def analyze_command(
    path: Annotated[Path, typer.Argument(help="Plain-text screenplay to analyze")],
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the master context as JSON")
    ] = False,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Use pattern extraction only, no service calls"),
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Ignore a cached analysis")
    ] = False,
    cache_dir: Annotated[
        Path | None,
        typer.Option("--cache-dir", help="Directory for cached analyses"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (YAML, TOML, or JSON)",
        ),
    ] = None,
) -> None:
    """Analyze a screenplay for hair, makeup and wardrobe continuity.

    Runs the five analysis phases (scenes, characters, continuity events,
    story timeline, appearance descriptions). Phases that cannot reach the
    service fall back to pattern extraction.
    """
    handler = CLIHandler(console)
    try:
        settings = load_settings(config)
        script_text, scenes = load_script(path)

        if not offline and not settings.llm_configured:
            if not json_output:
                console.print(
                    "[yellow]No service endpoint configured, "
                    "running offline analysis[/yellow]"
                )
            offline = True

        cache = ContextCache(DirectoryStore(cache_dir)) if cache_dir else None
        usage = UsageTracker()

        if json_output:
            context = asyncio.run(
                run_analysis(
                    script_text,
                    scenes,
                    settings,
                    offline=offline,
                    usage=usage,
                    cache=cache,
                    force=force,
                )
            )
            # Pure JSON without ANSI escape codes
            print(context.to_json())
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Analyzing screenplay...", total=None)

            def update_progress(msg: str, _pct: float) -> None:
                progress.update(task, description=msg)

            context = asyncio.run(
                run_analysis(
                    script_text,
                    scenes,
                    settings,
                    offline=offline,
                    usage=usage,
                    cache=cache,
                    force=force,
                    on_progress=update_progress,
                )
            )

        structure = context.story_structure
        console.print(
            f"\n[bold]{context.total_scenes}[/bold] scenes, "
            f"[bold]{structure.total_days}[/bold] story days "
            f"({structure.source}), "
            f"[bold]{len(context.continuity_events)}[/bold] continuity events, "
            f"[bold]{len(context.description_tags)}[/bold] description tags"
        )
        console.print(_summary_table(context))

        if context.degraded:
            phases = ", ".join(context.degraded_phases) or "all"
            console.print(f"\n[yellow]Pattern-only results for: {phases}[/yellow]")
            for error in context.errors[:5]:
                console.print(f"  • {error}", markup=False)
            if len(context.errors) > 5:  # pragma: no cover
                console.print(f"  ... and {len(context.errors) - 5} more")

        if not offline:
            _print_usage(usage.snapshot())

    except typer.Exit:
        raise
    except Exception as e:
        handler.handle_error(e, json_output)
