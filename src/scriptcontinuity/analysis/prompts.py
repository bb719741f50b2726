"""Prompt builders for the five analysis phases.

Scenes are numbered from 1 inside prompts; answers are converted back to
0-based indices by the analyzer.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from scriptcontinuity.models import Scene

TRUNCATION_MARKER = "\n[Additional scenes truncated...]"
MAX_SEED_NAMES = 50

DESCRIPTION_CATEGORIES = (
    "hair",
    "makeup",
    "sfx",
    "health",
    "injuries",
    "stunts",
    "weather",
    "wardrobe",
    "extras",
    "cast",
)


def summarize_scenes(
    scenes: Iterable[Scene],
    chars_per_scene: int,
    limit: int,
    numbered: bool = True,
) -> str:
    """Heading plus the start of each scene body, joined by ``---`` lines.

    Args:
        scenes: Scenes to summarize
        chars_per_scene: Body characters kept per scene
        limit: Overall length after which the summary is cut
        numbered: Prefix each entry with ``[Scene N]``

    Returns:
        Summary text, ending in a truncation marker when cut
    """
    entries = []
    for scene in scenes:
        body = (scene.raw_text or "")[:chars_per_scene]
        prefix = f"[Scene {scene.index + 1}] " if numbered else ""
        entries.append(f"{prefix}{scene.heading}\n{body}")
    summary = "\n---\n".join(entries)
    if len(summary) > limit:
        return summary[:limit] + TRUNCATION_MARKER
    return summary


def build_scene_structure_prompt(
    chunk: str, chunk_index: int, total_chunks: int, first_scene: int = 1
) -> str:
    """Phase 1: scene metadata for one chunk of the script.

    ``first_scene`` is the 1-based position of the first scene that starts
    in ``chunk``; unnumbered scenes are numbered on from it.
    """
    chunk_note = ""
    if total_chunks > 1:
        chunk_note = (
            f"NOTE: This is chunk {chunk_index + 1} of {total_chunks}. "
            "Process only the scenes in this portion. Scenes without a printed "
            f"number are numbered from {first_scene} in this portion.\n"
        )
    return f"""You are analyzing a film screenplay to extract structural information.

YOUR TASK:
Parse this script section and identify ALL scenes with their metadata.
{chunk_note}
SCENE IDENTIFICATION RULES:
1. Scene headers look like "INT. LOCATION - TIME", "EXT. LOCATION - TIME" or
   "INT./EXT. LOCATION - TIME", with an optional scene number before or after
   (e.g. "1 INT. FERRY - DAY 1" or "INT. FERRY - DAY - 1").
2. TIME indicators: DAY, NIGHT, MORNING, AFTERNOON, EVENING, DAWN, DUSK,
   CONTINUOUS, SAME, MOMENTS LATER, LATER. Story day markers look like
   "DAY 1", "D1" or "STORY DAY 3".
3. Scene numbers may be plain ("47"), lettered ("12A") or missing.

EXTRACT FOR EACH SCENE:
- scene_number: the scene number as a string, e.g. "47" or "12A"
- setting: INT, EXT or INT/EXT
- location: e.g. "FERRY" or "FARMHOUSE - KITCHEN"
- time_of_day: DAY, NIGHT, MORNING, ...
- story_day: the number if a story day is marked, else null
- characters_present: names of the characters in the scene
- synopsis: one sentence describing the action

SCRIPT SECTION:
{chunk}

Return a JSON array of all scenes found:
[
  {{
    "scene_number": "1",
    "setting": "EXT",
    "location": "FERRY",
    "time_of_day": "DAY",
    "story_day": 1,
    "characters_present": ["GWEN LAWSON", "PETER LAWSON"],
    "synopsis": "Gwen and Peter arrive on the ferry, looking somber"
  }}
]

IMPORTANT:
- Process ALL scenes in this section, in order, without skipping any
- Use null for anything you cannot determine
- Return ONLY valid JSON (no markdown, no code fences)"""


def build_character_prompt(
    scene_summaries: str, seed_names: Sequence[str], total_scenes: int
) -> str:
    """Phase 2: discover and categorize characters."""
    names = ", ".join(list(seed_names)[:MAX_SEED_NAMES]) or "(none found)"
    return f"""You are analyzing a complete film screenplay to identify ALL characters
and determine their importance.

TOTAL SCENES: {total_scenes}

POTENTIAL CHARACTERS FOUND (from script parsing):
{names}

SCREENPLAY SUMMARIES:
{scene_summaries}

CATEGORY DEFINITIONS:
- LEAD: in 40%+ of scenes, has a character arc, drives the plot
- SUPPORTING: in 10-40% of scenes, recurring presence
- DAY_PLAYER: in a few scenes, functional role, limited dialogue
- BACKGROUND: no dialogue, purely functional

For each character give the canonical name (most complete version), all name
variations, category, the scenes they appear in (scene numbers as listed
above), gender and physical description if stated, personality, character arc,
overall visual vibe, signature look and relationships.

Return JSON:
{{
  "characters": [
    {{
      "name": "GWEN LAWSON",
      "name_variations": ["GWEN", "GWEN LAWSON"],
      "category": "LEAD",
      "scenes_appeared": [1, 2, 3],
      "total_scenes": 3,
      "first_appearance": 1,
      "last_appearance": 3,
      "gender": "female",
      "physical_description": "Late thirties, tattoo on wrist",
      "character_arc": "Hopeful partner trying to save Peter",
      "personality": "Guarded, practical",
      "visual_vibe": "Weathered farm practicality",
      "signature_look": "Loose braid, no makeup",
      "relationships": [{{"character": "PETER LAWSON", "type": "Partner"}}]
    }}
  ]
}}

CRITICAL:
- Include EVERY character from the potential characters list
- Use null for physical traits the script does not state
- Return ONLY valid JSON (no markdown, no code fences)"""


def build_continuity_prompt(script_summary: str, character_names: Sequence[str]) -> str:
    """Phase 3: appearance-affecting continuity events."""
    names = ", ".join(character_names) or "Unknown"
    return f"""You are analyzing a screenplay to identify key continuity events that
affect character appearance.

MAIN CHARACTERS: {names}

CONTINUITY EVENT TYPES:
- INJURY: cuts, bruises, abrasions, burns
- ILLNESS: sickness, lesions, paleness, recovery
- GROOMING: beard growth, shaving
- HAIR: haircuts, dyeing, wigs
- MAKEUP: makeup applied, smudged or removed
- WEATHER: getting wet, sunburn, wind
- WARDROBE: torn or stained clothes, mud, blood on clothing
- TIMEJUMP: "WEEKS LATER", "MONTHS LATER"

SCREENPLAY:
{script_summary}

Return JSON:
{{
  "continuity_events": [
    {{
      "scene_number": 47,
      "character": "PETER LAWSON",
      "event_type": "INJURY",
      "description": "Forehead hits pier, creates abrasion",
      "start_scene": 47,
      "end_scene": 78,
      "visual_effect": "Forehead abrasion, fresh in 47-52, gone by 78"
    }}
  ]
}}

IMPORTANT:
- Track both the start AND the resolution of each change
  (end_scene null if unresolved)
- Use the scene numbers shown in the screenplay above
- Return ONLY valid JSON"""


def build_timeline_prompt(scenes: Sequence[Scene]) -> str:
    """Phase 4: group scenes into story days."""
    lines = []
    for scene in scenes:
        marker = f" [{scene.story_day}]" if scene.story_day else ""
        lines.append(f"Scene {scene.index + 1}: {scene.heading}{marker}")
    scene_list = "\n".join(lines)
    return f"""You are constructing a timeline of story days for a screenplay.

SCENE LIST:
{scene_list}

STORY DAY INFERENCE RULES:
1. EXPLICIT MARKERS (highest confidence): "DAY 1", "D3", etc.
2. TEMPORAL TRANSITIONS: "THE NEXT DAY" = new day, "CONTINUOUS" = same time
3. TIME OF DAY LOGIC: DAY -> EVENING -> NIGHT = same day; NIGHT -> MORNING = next day
4. A time jump ("THREE WEEKS LATER") starts exactly one new story day

Group consecutive scenes into story days and return:
{{
  "timeline": [
    {{
      "story_day": 1,
      "scenes": [1, 2, 3, 4, 5],
      "confidence": "high",
      "reasoning": "Scene 1 marked as 'DAY 1', continuous through scene 5",
      "time_span": "Morning through Evening"
    }}
  ],
  "total_story_days": 4,
  "ambiguous_ranges": []
}}

IMPORTANT:
- Mark uncertainty with confidence "high", "medium" or "low"
- Return ONLY valid JSON"""


def build_description_prompt(scenes_text: str, character_names: Sequence[str]) -> str:
    """Phase 5: verbatim appearance descriptions for tracked characters."""
    names = ", ".join(character_names) or "(none)"
    categories = "|".join(DESCRIPTION_CATEGORIES)
    return f"""You are analyzing screenplay scenes for production continuity for the
hair, makeup, wardrobe and SFX departments.

TRACKED CHARACTERS: {names}

SCENES:
{scenes_text}

Quote, word for word, EVERY sentence or phrase that describes a tracked
character's appearance, wardrobe or condition: hairstyles and hair condition,
makeup and skin, prosthetics, illness, injuries and their treatment, stunts
that leave a mark, weather effects, and clothing. Tag the same text in more
than one category when it applies to several.

Return JSON only:
{{
  "tags": [
    {{
      "scene_number": 3,
      "category": "{categories}",
      "character": "EXACT NAME from the tracked list or null",
      "text": "the descriptive phrase exactly as written",
      "confidence": "high|medium|low"
    }}
  ]
}}

Use the scene numbers shown above and return ONLY valid JSON."""
