"""CLI helpers."""

from scriptcontinuity.cli.utils.cli_handler import CLIHandler
from scriptcontinuity.cli.utils.script_loader import load_script, load_settings

__all__ = ["CLIHandler", "load_script", "load_settings"]
