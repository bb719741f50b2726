"""Main entry point for scriptcontinuity CLI when run as a module."""

from scriptcontinuity.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    main()
