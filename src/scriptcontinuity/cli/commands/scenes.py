"""CLI command for scriptcontinuity scenes."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from scriptcontinuity.cli.utils import CLIHandler, load_script
from scriptcontinuity.cli.utils.cli_handler import format_json
from scriptcontinuity.config import get_logger
from scriptcontinuity.models import Scene

logger = get_logger(__name__)
console = Console()


def _scene_dict(scene: Scene) -> dict[str, object]:
    return {
        "index": scene.index,
        "number": scene.display_number,
        "setting": scene.setting.value if scene.setting else None,
        "location": scene.location,
        "time_of_day": scene.time_of_day,
        "story_day": scene.story_day,
        "confidence": (
            scene.story_day_confidence.value if scene.story_day_confidence else None
        ),
        "note": scene.story_day_note,
        "omitted": scene.is_omitted,
    }


def scenes_command(
    path: Annotated[Path, typer.Argument(help="Plain-text screenplay to parse")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List scenes with their parsed headings and story days.

    Runs only the deterministic parser and story day sequencer; no service
    calls are made.
    """
    handler = CLIHandler(console)
    try:
        _, scenes = load_script(path)
    except Exception as e:
        handler.handle_error(e, json_output)
        return

    rows = [_scene_dict(scene) for scene in scenes]
    if json_output:
        print(format_json(rows))
        return

    table = Table(title=f"{path.name}: {len(scenes)} scenes")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Setting")
    table.add_column("Location")
    table.add_column("Time")
    table.add_column("Story Day", style="bold")
    table.add_column("Confidence")
    table.add_column("Note", style="dim")
    for row in rows:
        table.add_row(
            *(
                "" if row[key] is None else str(row[key])
                for key in (
                    "number",
                    "setting",
                    "location",
                    "time_of_day",
                    "story_day",
                    "confidence",
                    "note",
                )
            )
        )
    console.print(table)
