"""Hair & makeup keyword detection and continuity-event candidates."""

from __future__ import annotations

import re
from collections.abc import Iterable

from scriptcontinuity.models import ContinuityEvent, EventType, KeywordHit, Scene
from scriptcontinuity.parser.entities import compile_name_pattern
from scriptcontinuity.parser.script import heading_for_line, normalize_script_text

CONTEXT_RADIUS = 50

HMU_KEYWORDS: dict[str, list[str]] = {
    "wounds": [
        "cut",
        "cuts",
        "gash",
        "wound",
        "wounded",
        "bleeding",
        "bloody",
        "blood",
        "bruise",
        "bruised",
        "bruises",
        "scar",
        "scarred",
        "scratch",
        "scratches",
        "abrasion",
        "black eye",
        "stitches",
        "bandage",
        "bandaged",
        "burn",
        "burned",
        "swollen",
    ],
    "illness": [
        "sick",
        "pale",
        "fever",
        "feverish",
        "clammy",
        "cough",
        "coughing",
        "vomit",
        "vomits",
        "lesion",
        "lesions",
        "exhausted",
        "gaunt",
    ],
    "grooming": [
        "beard",
        "stubble",
        "shave",
        "shaves",
        "shaved",
        "clean-shaven",
        "haircut",
        "moustache",
        "mustache",
    ],
    "hair": [
        "hair",
        "wig",
        "bald",
        "ponytail",
        "braid",
        "braids",
        "curls",
        "dreadlocks",
        "dyed",
    ],
    "states": [
        "soaked",
        "wet",
        "drenched",
        "dirty",
        "muddy",
        "mud",
        "grime",
        "grimy",
        "sweat",
        "sweating",
        "dusty",
        "filthy",
        "disheveled",
        "dishevelled",
    ],
    "makeup": [
        "makeup",
        "make-up",
        "lipstick",
        "mascara",
        "eyeliner",
        "smudged",
        "rouge",
        "tears",
        "crying",
    ],
    "aging": [
        "aging",
        "aged",
        "older",
        "younger",
        "wrinkled",
        "wrinkles",
        "elderly",
        "prosthetic",
        "fat suit",
        "pregnant",
    ],
    "tattoos": ["tattoo", "tattoos", "tattooed", "piercing", "birthmark"],
    "weather": [
        "rain",
        "snow",
        "windswept",
        "sunburn",
        "sunburned",
        "frost",
        "storm",
    ],
}


def _compile_category(words: Iterable[str]) -> re.Pattern[str]:
    ordered = sorted(set(words), key=len, reverse=True)
    alternation = "|".join(re.escape(w) for w in ordered)
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


def compile_keyword_table(
    table: dict[str, list[str]],
) -> list[tuple[str, re.Pattern[str]]]:
    """Compile each category's word list into one whole-word matcher."""
    return [(category, _compile_category(words)) for category, words in table.items()]


_HMU_MATCHERS = compile_keyword_table(HMU_KEYWORDS)

EVENT_PATTERNS: tuple[tuple[re.Pattern[str], EventType], ...] = (
    (
        re.compile(r"\b(cuts?|bleeding|blood|wound|bruise|abrasion)\b", re.IGNORECASE),
        EventType.INJURY,
    ),
    (
        re.compile(r"\b(sick|ill|pale|fever|cough|lesions?|vomit)\b", re.IGNORECASE),
        EventType.ILLNESS,
    ),
    (
        re.compile(r"\b(beard|shave|haircut|hair\s+grows?)\b", re.IGNORECASE),
        EventType.GROOMING,
    ),
    (
        re.compile(r"\b(soaked|wet|drenched|rain|sweat)\b", re.IGNORECASE),
        EventType.WEATHER,
    ),
    (
        re.compile(r"\b(dirty|mud|grime|stain|torn)\b", re.IGNORECASE),
        EventType.WARDROBE,
    ),
    (
        re.compile(
            r"\b(weeks?\s+later|months?\s+later|years?\s+later|time\s+jump)\b",
            re.IGNORECASE,
        ),
        EventType.TIMEJUMP,
    ),
)


def detect_hmu_keywords(
    text: str,
    scene_index: int | None = None,
    matchers: list[tuple[str, re.Pattern[str]]] | None = None,
) -> list[KeywordHit]:
    """Find hair/makeup keywords with ±50 characters of context.

    Hits at the same offset collapse to the first category in table order.

    Args:
        text: Text to scan
        scene_index: Scene the text belongs to, recorded on every hit
        matchers: Compiled table; defaults to ``HMU_KEYWORDS``

    Returns:
        Hits sorted by position
    """
    if not text:
        return []
    hits: dict[int, KeywordHit] = {}
    for category, pattern in matchers or _HMU_MATCHERS:
        for match in pattern.finditer(text):
            if match.start() in hits:
                continue
            start = max(0, match.start() - CONTEXT_RADIUS)
            end = min(len(text), match.end() + CONTEXT_RADIUS)
            hits[match.start()] = KeywordHit(
                category=category,
                keyword=match.group(0).lower(),
                context=text[start:end].replace("\n", " ").strip(),
                position=match.start(),
                scene_index=scene_index,
            )
    return [hits[pos] for pos in sorted(hits)]


def detect_hmu_keywords_in_scenes(scenes: Iterable[Scene]) -> list[KeywordHit]:
    """Keyword hits for every scene; positions are relative to the scene text."""
    hits: list[KeywordHit] = []
    for scene in scenes:
        hits.extend(detect_hmu_keywords(scene.text, scene.index))
    return hits


def make_event_id(
    scene_index: int, event_type: EventType, character: str | None
) -> str:
    """Stable identifier for an event derived from its dedup key."""
    who = re.sub(r"[^a-z0-9]+", "-", (character or "").lower()).strip("-") or "any"
    return f"evt-{scene_index:04d}-{event_type.value}-{who}"


def extract_event_candidates(
    script_text: str, character_names: Iterable[str] | None = None
) -> list[ContinuityEvent]:
    """Scan the script line by line for continuity-event phrases.

    A scene counter advances on every scene heading so each event carries the
    0-based index of the scene it occurs in. Lines before the first heading
    are ignored. Within one scene an event type is recorded once per
    character.

    Args:
        script_text: Full screenplay text
        character_names: Known names; the first one mentioned on the line is
            credited with the event

    Returns:
        Events in script order
    """
    name_patterns = [
        (name, compile_name_pattern(name))
        for name in sorted(set(character_names or []), key=lambda n: (-len(n), n))
        if name and name.strip()
    ]
    events: list[ContinuityEvent] = []
    seen: set[tuple[int, EventType, str]] = set()
    scene_index = -1

    for line in normalize_script_text(script_text or "").split("\n"):
        if heading_for_line(line) is not None:
            scene_index += 1
            continue
        if scene_index < 0 or not line.strip():
            continue
        for pattern, event_type in EVENT_PATTERNS:
            if not pattern.search(line):
                continue
            character = next(
                (name for name, np in name_patterns if np.search(line)), None
            )
            key = (scene_index, event_type, (character or "").lower())
            if key in seen:
                continue
            seen.add(key)
            events.append(
                ContinuityEvent(
                    id=make_event_id(scene_index, event_type, character),
                    type=event_type,
                    start_scene=scene_index,
                    description=line.strip()[:200],
                    character=character,
                    source="pattern",
                )
            )
    return events
