"""Split plain screenplay text into scenes."""

from __future__ import annotations

import re

from scriptcontinuity.config import get_logger
from scriptcontinuity.models import Scene, SceneHeading
from scriptcontinuity.parser.scene_heading import parse_scene_heading

logger = get_logger(__name__)

# PDF extraction tends to split these across lines
_NORMALIZATIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(INT|EXT)\s*\n\s*\."), r"\1."),
    (re.compile(r"\b(INT|EXT)\s*\n\s*/\s*(INT|EXT)"), r"\1/\2"),
    (re.compile(r"CONTIN\s*\n\s*UED?", re.IGNORECASE), "CONTINUOUS"),
    (re.compile(r"\(\s*V\s*\.\s*O\s*\.\s*\)", re.IGNORECASE), "(V.O.)"),
    (re.compile(r"\(\s*O\s*\.\s*S\s*\.\s*\)", re.IGNORECASE), "(O.S.)"),
    (re.compile(r"\r\n?"), "\n"),
)


def normalize_script_text(text: str) -> str:
    """Repair the most common text-extraction artefacts."""
    for pattern, replacement in _NORMALIZATIONS:
        text = pattern.sub(replacement, text)
    return text


def heading_for_line(line: str) -> SceneHeading | None:
    """Heading parse used when splitting a script into scenes."""
    stripped = line.strip()
    heading = parse_scene_heading(stripped)
    if heading is None and stripped and stripped == stripped.upper():
        # Accept "INT. KITCHEN" without a time of day when the line is all caps
        heading = parse_scene_heading(stripped, strict=False)
    return heading


def parse_script(text: str) -> list[Scene]:
    """Split screenplay text into scenes at every scene heading.

    Text before the first heading (title page, FADE IN:) is ignored.

    Args:
        text: Full screenplay text

    Returns:
        Scenes in script order with 0-based indices
    """
    scenes: list[Scene] = []
    current: tuple[str, SceneHeading] | None = None
    body: list[str] = []

    def flush() -> None:
        if current is None:
            return
        line, heading = current
        scenes.append(
            Scene(
                index=len(scenes),
                heading=line.strip(),
                raw_text="\n".join(body).strip("\n"),
                number=heading.number,
                setting=heading.setting,
                location=heading.location,
                time_of_day=heading.time_of_day,
                is_omitted=heading.is_omitted,
            )
        )

    for line in normalize_script_text(text).split("\n"):
        heading = heading_for_line(line)
        if heading is not None:
            flush()
            current = (line, heading)
            body = []
        elif current is not None:
            body.append(line)
    flush()

    logger.debug("Split script into scenes", scene_count=len(scenes))
    return scenes
