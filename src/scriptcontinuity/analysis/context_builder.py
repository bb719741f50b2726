"""Assemble phase results into a ``MasterContext``."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from scriptcontinuity.analysis.context import (
    CharacterAnalysis,
    CharacterRecord,
    ContinuityEventRecord,
    ContinuityNotes,
    DayBreakdown,
    DescriptionTagRecord,
    ExtractedElements,
    MajorEvent,
    MasterContext,
    PhysicalProfile,
    ProgressionStageRecord,
    Relationship,
    SceneRecord,
    SceneSynopsis,
    ScriptDescription,
    Statistics,
    StoryPresence,
    StoryStructure,
    TimeJump,
    TimelineEntry,
    VisualProfile,
)
from scriptcontinuity.models import (
    CharacterCandidate,
    CharacterCategory,
    ContinuityEvent,
    DescriptionTag,
    PhaseResults,
    Scene,
    Timeline,
)
from scriptcontinuity.parser.entities import speaking_names
from scriptcontinuity.timeline.heuristic import build_heuristic_timeline

# First match wins per field
AGE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(?:early|mid|late)[\s-]+(?:teens|twenties|thirties|forties|fifties"
        r"|sixties|seventies|eighties)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:early|mid|late)[\s-]*\d0s\b", re.IGNORECASE),
    re.compile(r"\b\d0s\b"),
    re.compile(r"\b\d{1,2}\s*(?:years?[\s-]old|yo)\b", re.IGNORECASE),
    re.compile(
        r"\b(?:teenage|teenager|middle-aged|elderly|young|old)\b", re.IGNORECASE
    ),
)
HAIR_COLOR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(blonde?|brunette|auburn|red|ginger|black|brown|gr[ae]y|silver|white"
        r"|dark|fair|sandy|jet-black|strawberry-blonde)[\s-]+hair(?:ed)?\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(blonde|brunette|redhead|bald)\b", re.IGNORECASE),
)
BUILD_PATTERN = re.compile(
    r"\b(slim|slender|thin|lanky|skinny|wiry|stocky|muscular|athletic|heavyset"
    r"|overweight|burly|petite|brawny|plump|broad-shouldered|towering|frail)\b",
    re.IGNORECASE,
)
GENDER_PATTERN = re.compile(
    r"\b(woman|girl|lady|female|mother|wife|daughter|sister|man|boy|guy|male"
    r"|father|husband|son|brother)\b",
    re.IGNORECASE,
)
FEMALE_WORDS = frozenset(
    {"woman", "girl", "lady", "female", "mother", "wife", "daughter", "sister"}
)

NON_LINEAR_NOTE_RE = re.compile(r"flashback|earlier|before|ago|dream", re.IGNORECASE)
TIME_JUMP_NOTE_RE = re.compile(r"\blater\b|time jump", re.IGNORECASE)

_ELEMENT_BUCKETS = {
    "wardrobe": "mentioned_wardrobe",
    "hair": "mentioned_appearance_changes",
    "makeup": "mentioned_appearance_changes",
    "sfx": "mentioned_appearance_changes",
    "health": "mentioned_appearance_changes",
    "injuries": "mentioned_appearance_changes",
    "stunts": "physical_actions",
    "weather": "environmental_exposure",
}


def _first_match(
    patterns: Iterable[re.Pattern[str]], texts: Sequence[str]
) -> str | None:
    for text in texts:
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                return match.group(0).strip().lower()
    return None


def build_physical_profile(texts: Sequence[str]) -> PhysicalProfile:
    """Age, gender, hair colour and build from description text.

    Texts are scanned in order and a field keeps the first value found.
    """
    hair = None
    for text in texts:
        for pattern in HAIR_COLOR_PATTERNS:
            match = pattern.search(text)
            if match:
                hair = match.group(1).lower()
                break
        if hair:
            break
    gender_word = _first_match((GENDER_PATTERN,), texts)
    gender = None
    if gender_word:
        gender = "female" if gender_word in FEMALE_WORDS else "male"
    return PhysicalProfile(
        age=_first_match(AGE_PATTERNS, texts),
        gender=gender,
        build=_first_match((BUILD_PATTERN,), texts),
        hair_color=hair,
    )


def _event_record(event: ContinuityEvent) -> ContinuityEventRecord:
    return ContinuityEventRecord(
        id=event.id,
        type=event.type.value,
        start_scene=event.start_scene,
        end_scene=event.end_scene,
        character=event.character,
        description=event.description,
        visual_effect=event.visual_effect,
        progression=[
            ProgressionStageRecord(
                label=s.label, scene_offset=s.scene_offset, scene_index=s.scene_index
            )
            for s in event.progression
        ],
        affected_scenes=list(event.affected_scenes),
        source=event.source,
    )


def _tag_record(tag: DescriptionTag) -> DescriptionTagRecord:
    return DescriptionTagRecord(
        character=tag.character,
        scene_index=tag.scene_index,
        category=tag.category,
        text=tag.text,
        confidence=tag.confidence,
        source=tag.source,
    )


def _scene_record(scene: Scene) -> SceneRecord:
    return SceneRecord(
        index=scene.index,
        heading=scene.heading,
        number=scene.number,
        setting=scene.setting.value if scene.setting else None,
        location=scene.location,
        time_of_day=scene.time_of_day,
        story_day=scene.story_day,
        story_day_note=scene.story_day_note,
        story_day_confidence=(
            scene.story_day_confidence.value if scene.story_day_confidence else None
        ),
        is_omitted=scene.is_omitted,
        synopsis=scene.synopsis,
        characters_present=list(scene.characters_present),
    )


def _character_record(
    candidate: CharacterCandidate,
    scenes: Sequence[Scene],
    speakers: list[set[str]],
    events: Sequence[ContinuityEvent],
    tags: Sequence[DescriptionTag],
) -> CharacterRecord:
    names = {n.lower() for n in [candidate.canonical_name, *candidate.name_variations]}
    own_tags = sorted(
        (t for t in tags if candidate.matches(t.character)),
        key=lambda t: t.scene_index,
    )
    own_events = [e for e in events if candidate.matches(e.character)]

    descriptions: list[ScriptDescription] = []
    if candidate.intro_description:
        descriptions.append(
            ScriptDescription(
                text=candidate.intro_description,
                scene_index=candidate.first_appearance,
                type="introduction",
            )
        )
    if candidate.physical_description:
        descriptions.append(
            ScriptDescription(
                text=candidate.physical_description,
                scene_index=candidate.first_appearance,
                type="description",
            )
        )
    descriptions.extend(
        ScriptDescription(text=t.text, scene_index=t.scene_index, type=t.category)
        for t in own_tags
    )

    elements = ExtractedElements()
    for tag in own_tags:
        bucket = _ELEMENT_BUCKETS.get(tag.category)
        if bucket is None:
            continue
        values: list[str] = getattr(elements, bucket)
        if tag.text not in values:
            values.append(tag.text)

    synopses = [
        SceneSynopsis(scene_index=s.index, synopsis=s.synopsis)
        for s in scenes
        if s.synopsis and any(candidate.matches(n) for n in s.characters_present)
    ]
    speaking = [
        i
        for i in candidate.scene_indices
        if 0 <= i < len(speakers) and names & speakers[i]
    ]
    profile = build_physical_profile([d.text for d in descriptions])
    if candidate.gender:
        profile.gender = candidate.gender.lower()

    return CharacterRecord(
        name=candidate.canonical_name,
        name_variations=list(candidate.name_variations),
        script_descriptions=descriptions,
        physical_profile=profile,
        character_analysis=CharacterAnalysis(
            role=candidate.category.value.lower(),
            arc=candidate.arc or "",
            personality=candidate.personality or "",
        ),
        visual_profile=VisualProfile(
            overall_vibe=candidate.visual_vibe or "",
            style_choices="; ".join(elements.mentioned_wardrobe),
        ),
        story_presence=StoryPresence(
            first_appearance=candidate.first_appearance,
            last_appearance=candidate.last_appearance,
            total_scenes=candidate.scene_count,
            scenes_present=list(candidate.scene_indices),
            has_dialogue=candidate.has_dialogue,
            speaking_scenes=speaking,
        ),
        extracted_elements=elements,
        continuity_notes=ContinuityNotes(
            key_looks="; ".join(e.description for e in own_events),
            transformations="; ".join(
                e.description for e in own_events if not e.type.is_transient
            ),
            signature=candidate.signature_look or "",
        ),
        relationships=[
            Relationship(character=str(r["character"]), type=str(r.get("type") or ""))
            for r in candidate.relationships
            if r.get("character")
        ],
        synopses=synopses,
        event_ids=[e.id for e in own_events],
        category=candidate.category,
        scene_count=candidate.scene_count,
        source=candidate.source,
    )


def _story_structure(timeline: Timeline, scenes: Sequence[Scene]) -> StoryStructure:
    entries = [
        TimelineEntry(
            story_day=b.story_day,
            scenes=list(b.scenes),
            confidence=b.confidence.value,
            reasoning=b.reasoning,
            time_span=b.time_span,
        )
        for b in timeline.buckets
    ]
    notes = [(s.index, s.story_day_note) for s in scenes if s.story_day_note]
    return StoryStructure(
        total_days=timeline.total_story_days or (1 if scenes else 0),
        timeline=entries,
        day_breakdown=[
            DayBreakdown(
                day=f"Day {e.story_day}", scenes=e.scenes, description=e.reasoning
            )
            for e in entries
        ],
        flashbacks=[i for i, note in notes if NON_LINEAR_NOTE_RE.search(note)],
        time_jumps=[
            TimeJump(scene_index=i, note=note)
            for i, note in notes
            if TIME_JUMP_NOTE_RE.search(note)
        ],
        ambiguous_ranges=list(timeline.ambiguous_ranges),
        source=timeline.source,
    )


def _statistics(characters: Sequence[CharacterCandidate]) -> Statistics:
    def count(category: CharacterCategory) -> int:
        return sum(1 for c in characters if c.category is category)

    return Statistics(
        total_speaking_characters=sum(1 for c in characters if c.has_dialogue),
        lead_roles=count(CharacterCategory.LEAD),
        supporting_roles=count(CharacterCategory.SUPPORTING),
        day_players=count(CharacterCategory.DAY_PLAYER),
        background=count(CharacterCategory.BACKGROUND),
    )


def build_master_context(
    results: PhaseResults,
    scenes: Sequence[Scene],
    *,
    created_at: datetime | str | None = None,
) -> MasterContext:
    """Merge all phase outputs into one context.

    The result depends only on the arguments; two calls with equal inputs
    produce equal contexts apart from ``created_at``. The output shape is
    the same whether the phases used the service or fell back to patterns.

    Args:
        results: Phase outputs, possibly degraded
        scenes: Sequenced scenes
        created_at: Timestamp to record; now (UTC) when omitted

    Returns:
        The master context
    """
    if created_at is None:
        created_at = datetime.now(timezone.utc)
    if isinstance(created_at, datetime):
        created_at = created_at.isoformat()

    timeline = results.timeline or build_heuristic_timeline(scenes)
    events = sorted(results.events, key=lambda e: (e.start_scene, e.id))
    speakers = [speaking_names(scene.raw_text or "") for scene in scenes]

    characters: dict[str, CharacterRecord] = {}
    for candidate in results.characters:
        if candidate.canonical_name in characters:
            continue
        characters[candidate.canonical_name] = _character_record(
            candidate, scenes, speakers, events, results.descriptions
        )

    return MasterContext(
        total_scenes=len(scenes),
        scenes=[_scene_record(s) for s in scenes],
        characters=characters,
        story_structure=_story_structure(timeline, scenes),
        description_tags=[_tag_record(t) for t in results.descriptions],
        major_events=[
            MajorEvent(
                scene=e.start_scene,
                type=e.type.value,
                characters_affected=[e.character] if e.character else [],
                visual_impact=e.visual_effect or e.description,
            )
            for e in events
        ],
        continuity_events=[_event_record(e) for e in events],
        statistics=_statistics(results.characters),
        created_at=created_at,
        degraded=results.degraded or results.cancelled,
        degraded_phases=list(results.degraded_phases),
        errors=list(results.errors),
    )
