"""Deterministic screenplay text parsing."""

from scriptcontinuity.parser.entities import (
    categorize,
    extract_character_candidates,
    find_character_appearances,
    normalize_character_name,
)
from scriptcontinuity.parser.keywords import (
    detect_hmu_keywords,
    extract_event_candidates,
)
from scriptcontinuity.parser.scene_heading import parse_scene_heading
from scriptcontinuity.parser.script import parse_script

__all__ = [
    "categorize",
    "detect_hmu_keywords",
    "extract_character_candidates",
    "extract_event_candidates",
    "find_character_appearances",
    "normalize_character_name",
    "parse_scene_heading",
    "parse_script",
]
