"""scriptcontinuity CLI commands."""

from __future__ import annotations

from scriptcontinuity.cli.commands.analyze import analyze_command
from scriptcontinuity.cli.commands.connection import connection_test_command
from scriptcontinuity.cli.commands.scenes import scenes_command

__all__ = [
    "analyze_command",
    "scenes_command",
    "connection_test_command",
]
