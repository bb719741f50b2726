"""Healing progressions for injury events."""

from __future__ import annotations

import re
from collections.abc import Iterable

from scriptcontinuity.models import ContinuityEvent, EventType, ProgressionStage

OPEN_ENDED_SPAN = 10

HEALING_STAGES: dict[str, tuple[tuple[str, int], ...]] = {
    "cut": (
        ("Fresh/bleeding", 0),
        ("Scabbed", 2),
        ("Healing/pink", 5),
        ("Faint scar", 10),
    ),
    "bruise": (
        ("Fresh/red", 0),
        ("Purple/blue", 1),
        ("Green/yellow", 4),
        ("Fading", 10),
    ),
    "burn": (
        ("Fresh/blistered", 0),
        ("Scabbing", 3),
        ("Healing", 10),
        ("Scarred", 20),
    ),
    "wound": (
        ("Fresh/open", 0),
        ("Bandaged", 2),
        ("Healing", 7),
        ("Scarred", 14),
    ),
}

# Checked in order; the first kind mentioned in the description wins
_KIND_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("burn", re.compile(r"\bburn(?:s|ed|t)?\b", re.IGNORECASE)),
    ("bruise", re.compile(r"\b(?:bruis\w*|black\s+eye|contusion)\b", re.IGNORECASE)),
    (
        "cut",
        re.compile(
            r"\b(?:cuts?|gash\w*|scratch\w*|abrasion|laceration|slash\w*)\b",
            re.IGNORECASE,
        ),
    ),
)


def healing_kind(description: str | None) -> str:
    """Which stage table applies to an injury description."""
    for kind, pattern in _KIND_PATTERNS:
        if pattern.search(description or ""):
            return kind
    return "wound"


def build_progression(
    event_type: EventType,
    description: str | None,
    start_scene: int,
    total_scenes: int,
) -> list[ProgressionStage]:
    """Stage list for an event; empty for anything but injuries.

    Stages whose offset falls past the end of the script are dropped.
    """
    if event_type is not EventType.INJURY:
        return []
    stages = []
    for label, offset in HEALING_STAGES[healing_kind(description)]:
        scene_index = start_scene + offset
        if total_scenes and scene_index >= total_scenes:
            break
        stages.append(ProgressionStage(label, offset, scene_index))
    return stages


def affected_range(event: ContinuityEvent, total_scenes: int) -> list[int]:
    """Scene indices an event is visible in."""
    last_index = max(total_scenes - 1, event.start_scene)
    if event.end_scene is not None:
        end = max(event.end_scene, event.start_scene)
    elif event.type is EventType.INJURY:
        end = event.start_scene + OPEN_ENDED_SPAN
    else:
        end = event.start_scene
    return list(range(event.start_scene, min(end, last_index) + 1))


def attach_progressions(
    events: Iterable[ContinuityEvent], total_scenes: int
) -> list[ContinuityEvent]:
    """Fill ``progression`` and ``affected_scenes`` on every event in place."""
    result = list(events)
    for event in result:
        event.progression = build_progression(
            event.type, event.description, event.start_scene, total_scenes
        )
        event.affected_scenes = affected_range(event, total_scenes)
    return result
