"""Reading screenplay files and settings for CLI commands."""

from __future__ import annotations

from pathlib import Path

from scriptcontinuity.config import ContinuitySettings, get_logger, get_settings
from scriptcontinuity.exceptions import ValidationError
from scriptcontinuity.models import Scene
from scriptcontinuity.parser import parse_script
from scriptcontinuity.timeline import sequence_story_days

logger = get_logger(__name__)


def load_settings(config: Path | None) -> ContinuitySettings:
    """Global settings, or settings layered over ``config`` when given."""
    if config is None:
        return get_settings()
    if not config.exists():
        raise ValidationError(
            f"Config file not found: {config}",
            hint="Pass an existing YAML, TOML or JSON file to --config",
        )
    return ContinuitySettings.from_multiple_sources(config_files=[config])


def load_script(path: Path) -> tuple[str, list[Scene]]:
    """Read a plain-text screenplay, split it and assign story days.

    Raises:
        ValidationError: If the file is missing or contains no scene headings
    """
    if not path.is_file():
        raise ValidationError(f"Script file not found: {path}")
    text = path.read_text(encoding="utf-8", errors="replace")
    scenes = parse_script(text)
    if not scenes:
        raise ValidationError(
            f"No scene headings found in {path}",
            hint="Scene headings look like 'INT. KITCHEN - DAY'",
        )
    sequence_story_days(scenes)
    logger.debug("Loaded script", path=str(path), scenes=len(scenes))
    return text, scenes
