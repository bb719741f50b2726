"""scriptcontinuity command line interface."""

from scriptcontinuity.cli.main import app, main

__all__ = ["app", "main"]
