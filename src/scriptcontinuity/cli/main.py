"""Main CLI entry point."""

from __future__ import annotations

import os
from typing import Annotated

import typer
from rich.console import Console

from scriptcontinuity import __version__
from scriptcontinuity.cli.commands import (
    analyze_command,
    connection_test_command,
    scenes_command,
)
from scriptcontinuity.cli.utils.cli_handler import format_json
from scriptcontinuity.config import (
    clear_settings_cache,
    configure_logging,
    get_logger,
    get_settings,
)

logger = get_logger(__name__)
console = Console()

app = typer.Typer(
    name="scriptcontinuity",
    help="Screenplay continuity analysis for hair, makeup and wardrobe",
    pretty_exceptions_enable=False,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="analyze")(analyze_command)
app.command(name="scenes")(scenes_command)
app.command(name="test-connection")(connection_test_command)


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show scriptcontinuity version."""
    if json_output:
        print(format_json({"name": "scriptcontinuity", "version": __version__}))
    else:
        console.print(f"scriptcontinuity v{__version__}")


def _reconfigure_logging(level: str, debug: bool = False) -> None:
    os.environ["SCRIPTCONTINUITY_LOG_LEVEL"] = level
    if debug:
        os.environ["SCRIPTCONTINUITY_DEBUG"] = "true"
    clear_settings_cache()
    configure_logging(get_settings())


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging (INFO level)"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug", help="Enable debug logging", envvar="SCRIPTCONTINUITY_DEBUG"
        ),
    ] = False,
) -> None:
    """Configure global options."""
    if debug:
        _reconfigure_logging("DEBUG", debug=True)
        logger.debug("Debug mode enabled")
    elif verbose:
        _reconfigure_logging("INFO")
        logger.info("Verbose mode enabled")


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
