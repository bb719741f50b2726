"""Pattern-only story day buckets, used when the service cannot build a timeline."""

from __future__ import annotations

import re
from collections.abc import Sequence

from scriptcontinuity.config import get_logger
from scriptcontinuity.models import Confidence, Scene, Timeline, TimelineBucket
from scriptcontinuity.parser.scene_heading import parse_scene_heading

logger = get_logger(__name__)

HEADING_TIME_RE = re.compile(
    r"\b(MOMENTS LATER|DAY|NIGHT|MORNING|AFTERNOON|EVENING|DAWN|DUSK"
    r"|CONTINUOUS|SAME|LATER)\b",
    re.IGNORECASE,
)
LONG_JUMP_RE = re.compile(r"\b(?:WEEKS?|MONTHS?|YEARS?)\s+LATER\b", re.IGNORECASE)


def heading_time_token(heading: str) -> str | None:
    """First time-of-day word in a heading, upper-cased."""
    match = HEADING_TIME_RE.search(heading or "")
    return match.group(1).upper() if match else None


def build_heuristic_timeline(scenes: Sequence[Scene]) -> Timeline:
    """Group scenes into story day buckets without the service.

    A bucket is closed when a heading carries an explicit day marker that
    differs from the running day (high), when a NIGHT scene is followed by
    MORNING or DAY (medium), or when a scene mentions a jump of weeks,
    months or years (high). The final bucket is medium.

    Args:
        scenes: Scenes in script order

    Returns:
        Timeline with 0-based scene indices in each bucket
    """
    buckets: list[TimelineBucket] = []
    current_day = 1
    current: list[int] = []
    last_time: str | None = None

    def close(confidence: Confidence) -> None:
        nonlocal current
        buckets.append(
            TimelineBucket(story_day=current_day, scenes=current, confidence=confidence)
        )
        current = []

    for scene in scenes:
        heading = scene.heading or ""
        time_token = heading_time_token(heading)

        parsed = parse_scene_heading(heading, strict=False)
        explicit_day = parsed.story_day if parsed is not None else None
        if explicit_day is not None:
            if explicit_day != current_day and current:
                close(Confidence.HIGH)
            current_day = explicit_day

        if last_time == "NIGHT" and time_token in ("MORNING", "DAY") and current:
            close(Confidence.MEDIUM)
            current_day += 1

        if LONG_JUMP_RE.search(scene.text) and current:
            close(Confidence.HIGH)
            current_day += 1

        current.append(scene.index)
        last_time = time_token

    if current:
        close(Confidence.MEDIUM)

    logger.debug(
        "Built heuristic timeline",
        scene_count=len(scenes),
        buckets=len(buckets),
    )
    return Timeline(buckets=buckets, total_story_days=len(buckets), source="heuristic")
