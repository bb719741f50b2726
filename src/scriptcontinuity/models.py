"""Data models for screenplay continuity analysis.

Scene indices are 0-based throughout these models. Conversion to the 1-based
numbering people read happens only where text is shown to the generative
service or printed by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Setting(str, Enum):
    """Canonical interior/exterior setting of a scene."""

    INT = "INT"
    EXT = "EXT"
    INT_EXT = "INT/EXT"


class CharacterCategory(str, Enum):
    """Importance ranking of a character."""

    LEAD = "LEAD"
    SUPPORTING = "SUPPORTING"
    DAY_PLAYER = "DAY_PLAYER"
    BACKGROUND = "BACKGROUND"

    @classmethod
    def coerce(cls, value: Any) -> CharacterCategory | None:
        """Map loose service spellings ("day player", "lead") to a member."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            return None


class EventType(str, Enum):
    """Kinds of appearance-continuity change."""

    INJURY = "injury"
    ILLNESS = "illness"
    GROOMING = "grooming"
    HAIR = "hair"
    MAKEUP = "makeup"
    WARDROBE = "wardrobe"
    WEATHER = "weather"
    TIMEJUMP = "timejump"

    @classmethod
    def coerce(cls, value: Any) -> EventType | None:
        """Map service and pattern labels onto a member.

        ``WET`` is tracked as weather and ``DIRTY`` as wardrobe.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "").replace(" ", "").replace("-", "")
        return _EVENT_ALIASES.get(key)

    @property
    def is_transient(self) -> bool:
        """Whether the change washes off within a scene or two."""
        return self in (EventType.WEATHER, EventType.TIMEJUMP)


_EVENT_ALIASES: dict[str, EventType] = {
    "injury": EventType.INJURY,
    "injuries": EventType.INJURY,
    "wound": EventType.INJURY,
    "wounds": EventType.INJURY,
    "illness": EventType.ILLNESS,
    "health": EventType.ILLNESS,
    "physicalstate": EventType.ILLNESS,
    "grooming": EventType.GROOMING,
    "hair": EventType.HAIR,
    "makeup": EventType.MAKEUP,
    "sfx": EventType.MAKEUP,
    "wardrobe": EventType.WARDROBE,
    "wardrobedamage": EventType.WARDROBE,
    "dirty": EventType.WARDROBE,
    "weather": EventType.WEATHER,
    "wet": EventType.WEATHER,
    "gettingwet": EventType.WEATHER,
    "timejump": EventType.TIMEJUMP,
    "timejumps": EventType.TIMEJUMP,
}


class Confidence(str, Enum):
    """How a story day or bucket assignment was reached."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    DEFAULT = "default"
    ASSUMED = "assumed"


@dataclass
class SceneHeading:
    """Structured form of one scene heading line."""

    raw: str
    number: str | None = None
    setting: Setting | None = None
    location: str | None = None
    time_of_day: str | None = None
    story_day: int | None = None
    is_omitted: bool = False

    def format(self) -> str:
        """Render the heading back to screenplay form (without story day)."""
        if self.is_omitted:
            return f"{self.number} OMITTED" if self.number else "OMITTED"
        parts = [f"{self.setting.value}." if self.setting else ""]
        parts.append(self.location or "")
        text = " ".join(p for p in parts if p)
        if self.time_of_day:
            text += f" - {self.time_of_day}"
        if self.number:
            text = f"{self.number} {text}"
        return text


@dataclass
class Scene:
    """A scene of the screenplay, annotated in place by later passes."""

    index: int
    heading: str
    raw_text: str = ""
    number: str | None = None
    setting: Setting | None = None
    location: str | None = None
    time_of_day: str | None = None
    story_day: str | None = None
    story_day_note: str | None = None
    story_day_confidence: Confidence | None = None
    is_omitted: bool = False
    synopsis: str | None = None
    characters_present: list[str] = field(default_factory=list)

    @property
    def display_number(self) -> str:
        """Scene number as printed, falling back to the 1-based position."""
        return self.number or str(self.index + 1)

    @property
    def text(self) -> str:
        """Heading and body together."""
        return f"{self.heading}\n{self.raw_text}" if self.raw_text else self.heading


@dataclass
class CharacterCandidate:
    """A character surfaced by pattern extraction or the service."""

    canonical_name: str
    name_variations: list[str] = field(default_factory=list)
    category: CharacterCategory = CharacterCategory.BACKGROUND
    scene_indices: list[int] = field(default_factory=list)
    has_dialogue: bool = False
    intro_description: str | None = None
    gender: str | None = None
    physical_description: str | None = None
    arc: str | None = None
    personality: str | None = None
    visual_vibe: str | None = None
    signature_look: str | None = None
    relationships: list[dict[str, Any]] = field(default_factory=list)
    source: str = "pattern"

    @property
    def first_appearance(self) -> int | None:
        return min(self.scene_indices) if self.scene_indices else None

    @property
    def last_appearance(self) -> int | None:
        return max(self.scene_indices) if self.scene_indices else None

    @property
    def scene_count(self) -> int:
        return len(self.scene_indices)

    def matches(self, name: str | None) -> bool:
        """Case-insensitive match against canonical name and variations."""
        if not name:
            return False
        wanted = name.strip().lower()
        names = [self.canonical_name, *self.name_variations]
        return any(n.strip().lower() == wanted for n in names)


@dataclass
class ProgressionStage:
    """One stage of a healing or growth progression."""

    label: str
    scene_offset: int
    scene_index: int


@dataclass
class ContinuityEvent:
    """A tracked appearance change with a scene range."""

    id: str
    type: EventType
    start_scene: int
    description: str
    character: str | None = None
    end_scene: int | None = None
    progression: list[ProgressionStage] = field(default_factory=list)
    affected_scenes: list[int] = field(default_factory=list)
    visual_effect: str | None = None
    source: str = "pattern"


@dataclass
class KeywordHit:
    """A hair/makeup keyword found in the script text."""

    category: str
    keyword: str
    context: str
    position: int
    scene_index: int | None = None


@dataclass
class DescriptionTag:
    """A quoted appearance description attributed to a character."""

    character: str
    scene_index: int
    category: str
    text: str
    confidence: str = "medium"
    source: str = "pattern"


@dataclass
class TimelineBucket:
    """A group of scenes sharing one story day."""

    story_day: int
    scenes: list[int]
    confidence: Confidence = Confidence.MEDIUM
    reasoning: str = ""
    time_span: str = ""


@dataclass
class Timeline:
    """Story day buckets for the whole script."""

    buckets: list[TimelineBucket] = field(default_factory=list)
    total_story_days: int = 0
    ambiguous_ranges: list[Any] = field(default_factory=list)
    source: str = "heuristic"

    def day_of(self, scene_index: int) -> int | None:
        """Story day of the bucket holding ``scene_index``."""
        for bucket in self.buckets:
            if scene_index in bucket.scenes:
                return bucket.story_day
        return None


@dataclass
class PhaseResults:
    """Outputs of the five analysis phases plus failure bookkeeping."""

    scenes: list[Scene] = field(default_factory=list)
    characters: list[CharacterCandidate] = field(default_factory=list)
    events: list[ContinuityEvent] = field(default_factory=list)
    timeline: Timeline | None = None
    descriptions: list[DescriptionTag] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    degraded_phases: list[str] = field(default_factory=list)
    cancelled: bool = False

    def mark_degraded(self, phase: str) -> None:
        """Remember that a phase ran without (full) service help."""
        if phase not in self.degraded_phases:
            self.degraded_phases.append(phase)

    def record_failure(self, phase: str, error: Exception | str) -> None:
        """Remember that a phase fell back to pattern-only data."""
        self.errors.append(f"{phase}: {error}")
        self.mark_degraded(phase)

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_phases)
