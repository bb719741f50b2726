"""Character candidate extraction from raw screenplay text.

Two independent passes feed one candidate table:

* dialogue headers: an all-caps line, optionally followed by a parenthetical
* introductions: "we meet NAME", "NAME enters", "NAME (30s, ...)", "NAME, 40s,"

Both passes share the exclusion set and ``normalize_character_name``. It is
plain regex work with no service calls, so every function here returns a
value (possibly empty) for any string input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from scriptcontinuity.models import CharacterCandidate, CharacterCategory, Scene
from scriptcontinuity.parser.scene_heading import SETTING_RE
from scriptcontinuity.parser.script import heading_for_line, parse_script

LEAD_RATIO = 0.4
SUPPORTING_RATIO = 0.1

EXCLUDED_NAMES = frozenset(
    {
        "INT",
        "EXT",
        "FADE",
        "FADE IN",
        "FADE OUT",
        "FADE TO BLACK",
        "CUT",
        "CUT TO",
        "SMASH CUT",
        "MATCH CUT",
        "DISSOLVE",
        "DISSOLVE TO",
        "CONTINUED",
        "CONT",
        "MORE",
        "THE END",
        "END",
        "TITLE",
        "TITLE CARD",
        "SUPER",
        "CHYRON",
        "CARD",
        "INSERT",
        "BACK TO",
        "BACK TO SCENE",
        "INTERCUT",
        "FLASHBACK",
        "END FLASHBACK",
        "DREAM SEQUENCE",
        "MONTAGE",
        "END MONTAGE",
        "SERIES OF SHOTS",
        "ANGLE ON",
        "CLOSE ON",
        "CLOSE UP",
        "WIDE",
        "POV",
        "OMITTED",
        "LATER",
        "CONTINUOUS",
        "SAME",
        "MORNING",
        "AFTERNOON",
        "EVENING",
        "NIGHT",
        "DAY",
        "DAWN",
        "DUSK",
        "MOMENTS",
        "MOMENTS LATER",
        "THE NEXT",
        "THE NEXT DAY",
        "V.O",
        "O.S",
        "O.C",
    }
)

# "THREE WEEKS LATER", "CUT TO"
TRANSITION_ENDINGS = frozenset({"LATER", "EARLIER", "AGO", "TO"})

DIALOGUE_HEADER_RE = re.compile(r"^([A-Z][A-Z\s.'-]{1,30})\s*(?:\([^)]*\))?\s*$")
_NAME = r"[A-Z][A-Z'\-]+(?:\s+[A-Z][A-Z'\-]+){0,2}"
_AGE = (
    r"(?:\d{1,2}s?|early|mid|late|teens|twenties|thirties|forties|fifties"
    r"|sixties|seventies|eighties)"
)
INTRO_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"(?i:\bwe\s+meet)\s+(?P<name>{_NAME})\b(?:\s*,\s*(?P<desc>[^.]+))?"),
    re.compile(
        rf"\b(?P<name>{_NAME})\s+(?i:enters|walks\s+in|steps\s+in|appears|arrives)\b"
    ),
    re.compile(rf"\b(?P<name>{_NAME})\s*\((?P<desc>(?i:{_AGE})[^)]*)\)"),
    re.compile(rf"\b(?P<name>{_NAME}),\s*(?P<desc>(?i:{_AGE})\b[^.\n]*)"),
)
_SUFFIX_RE = re.compile(
    r"\s*\(?\s*(?:V\.?\s*O\.?|O\.?\s*S\.?|O\.?\s*C\.?|CONT'?D?\.?|CONTINUING)\s*\)?$",
    re.IGNORECASE,
)
_PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)\s*$")


def normalize_character_name(name: str) -> str:
    """Strip V.O./O.S./CONT'D suffixes and punctuation, then title-case.

    Args:
        name: Raw name as written (e.g. ``"JOHN (V.O.)"``)

    Returns:
        Canonical name (e.g. ``"John"``); empty string if nothing remains
    """
    cleaned = name or ""
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _SUFFIX_RE.sub("", cleaned)
        cleaned = _PARENTHETICAL_RE.sub("", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" .,:;'-")
    return " ".join(word.capitalize() for word in cleaned.split(" ") if word)


def is_valid_character_name(name: str) -> bool:
    """Reject transitions, technical terms and scene-heading fragments."""
    stripped = (name or "").strip()
    if len(stripped) < 2 or len(stripped) > 40:
        return False
    if stripped[0].isdigit():
        return False
    upper = stripped.upper().rstrip(".:")
    if not upper or upper in EXCLUDED_NAMES:
        return False
    first_word = upper.split()[0].rstrip(".")
    if first_word in {"INT", "EXT", "I/E", "INT/EXT", "EXT/INT"}:
        return False
    if upper.split()[-1] in TRANSITION_ENDINGS:
        return False
    if SETTING_RE.match(upper):
        return False
    return bool(normalize_character_name(stripped))


def categorize(
    scene_count: int, total_scenes: int, has_dialogue: bool
) -> CharacterCategory:
    """Assign an importance category from scene-count ratios.

    * at least 40% of scenes and has dialogue: LEAD
    * at least 10% of scenes: SUPPORTING
    * at least one scene with dialogue: DAY_PLAYER
    * anything else: BACKGROUND
    """
    if total_scenes <= 0 or scene_count <= 0:
        return CharacterCategory.BACKGROUND
    ratio = scene_count / total_scenes
    if ratio >= LEAD_RATIO and has_dialogue:
        return CharacterCategory.LEAD
    if ratio >= SUPPORTING_RATIO:
        return CharacterCategory.SUPPORTING
    if has_dialogue:
        return CharacterCategory.DAY_PLAYER
    return CharacterCategory.BACKGROUND


def compile_name_pattern(name: str) -> re.Pattern[str]:
    """Case-insensitive pattern matching ``name`` between non-alphanumerics."""
    escaped = re.escape(name.strip())
    return re.compile(rf"(?<![A-Za-z0-9]){escaped}(?![A-Za-z0-9])", re.IGNORECASE)


def find_character_appearances(name: str, scenes: Iterable[Scene]) -> list[int]:
    """0-based indices of scenes whose text mentions ``name``."""
    if not name or not name.strip():
        return []
    pattern = compile_name_pattern(name)
    return [scene.index for scene in scenes if pattern.search(scene.text)]


def _dialogue_headers(text: str) -> list[str]:
    lines = text.split("\n")
    names: list[str] = []
    for idx, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or heading_for_line(stripped) is not None:
            continue
        match = DIALOGUE_HEADER_RE.match(stripped)
        if not match:
            continue
        raw = match.group(1).strip()
        # A header is followed by the line being spoken
        following = next((ln.strip() for ln in lines[idx + 1 :] if ln.strip()), "")
        if not following:
            continue
        if raw.endswith(".") and _SUFFIX_RE.search(raw) is None:
            continue
        if is_valid_character_name(raw):
            names.append(raw)
    return names


def speaking_names(text: str) -> set[str]:
    """Lower-cased canonical names of everyone with a dialogue header in ``text``."""
    return {normalize_character_name(raw).lower() for raw in _dialogue_headers(text)}


def _introductions(text: str) -> list[tuple[str, str | None]]:
    found: list[tuple[str, str | None]] = []
    for pattern in INTRO_PATTERNS:
        for match in pattern.finditer(text):
            raw = match.group("name").strip()
            if not is_valid_character_name(raw):
                continue
            desc = match.groupdict().get("desc")
            found.append((raw, desc.strip() if desc else None))
    return found


class _CandidateTable:
    def __init__(self) -> None:
        self.by_key: dict[str, CharacterCandidate] = {}

    def add(
        self,
        raw: str,
        scene_index: int,
        *,
        spoke: bool = False,
        intro: str | None = None,
    ) -> None:
        canonical = normalize_character_name(raw)
        if not canonical:
            return
        key = canonical.lower()
        candidate = self.by_key.get(key)
        if candidate is None:
            candidate = CharacterCandidate(canonical_name=canonical)
            self.by_key[key] = candidate
        written = _PARENTHETICAL_RE.sub("", _SUFFIX_RE.sub("", raw)).strip()
        if written and written not in candidate.name_variations:
            candidate.name_variations.append(written)
        if scene_index not in candidate.scene_indices:
            candidate.scene_indices.append(scene_index)
        candidate.has_dialogue = candidate.has_dialogue or spoke
        if intro and not candidate.intro_description:
            candidate.intro_description = intro


def extract_character_candidates(
    script_text: str, scenes: list[Scene] | None = None
) -> list[CharacterCandidate]:
    """Extract character candidates with scene membership and categories.

    Args:
        script_text: Full screenplay text
        scenes: Scenes already split from ``script_text``; split here if omitted

    Returns:
        Candidates sorted by scene count (descending), then name
    """
    if scenes is None:
        scenes = parse_script(script_text)

    table = _CandidateTable()
    for scene in scenes:
        body = scene.raw_text or ""
        for raw in _dialogue_headers(body):
            table.add(raw, scene.index, spoke=True)
        for raw, desc in _introductions(body):
            table.add(raw, scene.index, intro=desc)

    total = len(scenes)
    candidates = list(table.by_key.values())
    for candidate in candidates:
        mentions: set[int] = set(candidate.scene_indices)
        for variation in {candidate.canonical_name, *candidate.name_variations}:
            mentions.update(find_character_appearances(variation, scenes))
        candidate.scene_indices = sorted(mentions)
        candidate.category = categorize(
            candidate.scene_count, total, candidate.has_dialogue
        )

    candidates.sort(key=lambda c: (-c.scene_count, c.canonical_name))
    return candidates


def recategorize(candidates: list[CharacterCandidate], total_scenes: int) -> None:
    """Re-derive categories after scene membership changed."""
    for candidate in candidates:
        candidate.category = categorize(
            candidate.scene_count, total_scenes, candidate.has_dialogue
        )
