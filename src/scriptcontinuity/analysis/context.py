"""Master context models.

Field names are snake_case in Python; ``to_dict()`` emits the camelCase keys
downstream consumers read (``scriptDescriptions``, ``storyPresence``, ...).
Scene references are 0-based indices.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scriptcontinuity.models import CharacterCategory

ANALYSIS_VERSION = "3.0-multipass"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScriptDescription(_CamelModel):
    """A piece of script text describing a character."""

    text: str
    scene_index: int | None = None
    type: str = "description"


class PhysicalProfile(_CamelModel):
    age: str | None = None
    gender: str | None = None
    build: str | None = None
    hair_color: str | None = None


class CharacterAnalysis(_CamelModel):
    role: str = "supporting"
    arc: str = ""
    personality: str = ""


class VisualProfile(_CamelModel):
    overall_vibe: str = ""
    style_choices: str = ""


class StoryPresence(_CamelModel):
    first_appearance: int | None = None
    last_appearance: int | None = None
    total_scenes: int = 0
    scenes_present: list[int] = Field(default_factory=list)
    has_dialogue: bool = False
    speaking_scenes: list[int] = Field(default_factory=list)


class ExtractedElements(_CamelModel):
    """Quoted description text sorted by what it is about."""

    mentioned_wardrobe: list[str] = Field(default_factory=list)
    mentioned_appearance_changes: list[str] = Field(default_factory=list)
    physical_actions: list[str] = Field(default_factory=list)
    environmental_exposure: list[str] = Field(default_factory=list)


class ContinuityNotes(_CamelModel):
    key_looks: str = ""
    transformations: str = ""
    signature: str = ""


class Relationship(_CamelModel):
    character: str
    type: str = ""


class SceneSynopsis(_CamelModel):
    scene_index: int
    synopsis: str


class CharacterRecord(_CamelModel):
    """Everything known about one character."""

    name: str
    name_variations: list[str] = Field(default_factory=list)
    script_descriptions: list[ScriptDescription] = Field(default_factory=list)
    physical_profile: PhysicalProfile = Field(default_factory=PhysicalProfile)
    character_analysis: CharacterAnalysis = Field(default_factory=CharacterAnalysis)
    visual_profile: VisualProfile = Field(default_factory=VisualProfile)
    story_presence: StoryPresence = Field(default_factory=StoryPresence)
    extracted_elements: ExtractedElements = Field(default_factory=ExtractedElements)
    continuity_notes: ContinuityNotes = Field(default_factory=ContinuityNotes)
    relationships: list[Relationship] = Field(default_factory=list)
    synopses: list[SceneSynopsis] = Field(default_factory=list)
    event_ids: list[str] = Field(default_factory=list)
    category: CharacterCategory = CharacterCategory.BACKGROUND
    scene_count: int = 0
    source: str = "pattern"


class TimelineEntry(_CamelModel):
    story_day: int
    scenes: list[int] = Field(default_factory=list)
    confidence: str = "medium"
    reasoning: str = ""
    time_span: str = ""


class DayBreakdown(_CamelModel):
    day: str
    scenes: list[int] = Field(default_factory=list)
    description: str = ""


class TimeJump(_CamelModel):
    scene_index: int
    note: str


class StoryStructure(_CamelModel):
    total_days: int = 0
    timeline: list[TimelineEntry] = Field(default_factory=list)
    day_breakdown: list[DayBreakdown] = Field(default_factory=list)
    flashbacks: list[int] = Field(default_factory=list)
    time_jumps: list[TimeJump] = Field(default_factory=list)
    ambiguous_ranges: list[Any] = Field(default_factory=list)
    source: str = "heuristic"


class SceneRecord(_CamelModel):
    """Per-scene metadata as the sequencer and phase 1 left it."""

    index: int
    heading: str
    number: str | None = None
    setting: str | None = None
    location: str | None = None
    time_of_day: str | None = None
    story_day: str | None = None
    story_day_note: str | None = None
    story_day_confidence: str | None = None
    is_omitted: bool = False
    synopsis: str | None = None
    characters_present: list[str] = Field(default_factory=list)


class ProgressionStageRecord(_CamelModel):
    label: str
    scene_offset: int
    scene_index: int


class ContinuityEventRecord(_CamelModel):
    id: str
    type: str
    start_scene: int
    end_scene: int | None = None
    character: str | None = None
    description: str = ""
    visual_effect: str | None = None
    progression: list[ProgressionStageRecord] = Field(default_factory=list)
    affected_scenes: list[int] = Field(default_factory=list)
    source: str = "pattern"


class MajorEvent(_CamelModel):
    scene: int
    type: str
    characters_affected: list[str] = Field(default_factory=list)
    visual_impact: str = ""


class DescriptionTagRecord(_CamelModel):
    character: str
    scene_index: int
    category: str
    text: str
    confidence: str = "medium"
    source: str = "pattern"


class Statistics(BaseModel):
    """Character counts per category (keys stay snake_case)."""

    total_speaking_characters: int = 0
    lead_roles: int = 0
    supporting_roles: int = 0
    day_players: int = 0
    background: int = 0


class MasterContext(_CamelModel):
    """Aggregate result of one analysis run."""

    total_scenes: int = 0
    scenes: list[SceneRecord] = Field(default_factory=list)
    characters: dict[str, CharacterRecord] = Field(default_factory=dict)
    story_structure: StoryStructure = Field(default_factory=StoryStructure)
    description_tags: list[DescriptionTagRecord] = Field(default_factory=list)
    major_events: list[MajorEvent] = Field(default_factory=list)
    continuity_events: list[ContinuityEventRecord] = Field(default_factory=list)
    statistics: Statistics = Field(default_factory=Statistics)
    created_at: str = ""
    analysis_version: str = ANALYSIS_VERSION
    degraded: bool = False
    degraded_phases: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible dict with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MasterContext:
        """Rebuild a context from ``to_dict()`` output."""
        return cls.model_validate(data)

    def character(self, name: str) -> CharacterRecord | None:
        """Look a character up by canonical name or variation, ignoring case."""
        wanted = name.strip().lower()
        for record in self.characters.values():
            names = [record.name, *record.name_variations]
            if any(n.lower() == wanted for n in names):
                return record
        return None
