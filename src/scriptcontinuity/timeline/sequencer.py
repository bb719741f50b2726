"""Story day sequencing.

A story day here is a counter of distinct continuity "look phases", not a
calendar date: "THREE WEEKS LATER" moves the counter on by exactly one and
leaves a note saying how much time passed. Production needs a small, bounded
number of looks per character, not hundreds of calendar days.

Each scene is checked against its heading and the start of its body, with
the first matching rule winning:

1. on-screen card (``SUPER: DAY 4``)            -> literal N, high
2. marker in the heading (``STORY DAY 2``, ``D3``) -> literal N, high
3. continuous / same time / intercut           -> previous day and time, high
4. flashback and other non-linear cues         -> +1 with note, high
5. time jump in days/weeks/months/years        -> +1 with note, high
6. next-day cue                                -> +1, Morning, high
7. later the same day                          -> same day, medium
8. nothing                                     -> Day 1 (default) or inherit (assumed)

The pass runs strictly left to right and never revisits a decided scene.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from scriptcontinuity.config import get_logger
from scriptcontinuity.models import Confidence, Scene
from scriptcontinuity.parser.scene_heading import SPELLED_NUMBERS, parse_scene_heading

logger = get_logger(__name__)

BODY_PROBE_LENGTH = 400

_WORD_NUMBERS = {
    **{word.lower(): value for word, value in SPELLED_NUMBERS.items()},
    "a": 1,
    "an": 1,
    "eleven": 11,
    "twelve": 12,
    "fifteen": 15,
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
}
_QUANTITY = r"\d+|a\s+few|few|several|many|" + "|".join(
    sorted(_WORD_NUMBERS, key=len, reverse=True)
)

ON_SCREEN_RE = re.compile(
    r"^\s*(?:TITLE|SUPER|CHYRON|CARD)\s*:\s*[\"'“]?\s*(?:STORY\s+)?DAY\s+"
    r"(?P<n>\d+|" + "|".join(SPELLED_NUMBERS) + r")\b",
    re.IGNORECASE | re.MULTILINE,
)
CONTINUOUS_HEADING_RE = re.compile(
    r"\b(?:CONTINUOUS|SAME(?:\s+TIME)?|SIMULTANEOUS|INTERCUT)\b", re.IGNORECASE
)
CONTINUOUS_BODY_RE = re.compile(
    r"\b(?:same\s+time|intercut|simultaneously)\b", re.IGNORECASE
)
NON_LINEAR_RE = re.compile(
    r"\b(?P<cue>(?:end\s+(?:of\s+)?)?flash\s*-?\s*back"
    rf"|(?:{_QUANTITY})\s+(?:years?|months?|weeks?|days?)\s+(?:earlier|before|ago)"
    r"|dream\s+sequence|fantasy\s+sequence"
    r"|back\s+to\s+(?:the\s+)?present|present\s+day)\b",
    re.IGNORECASE,
)
TIME_JUMP_RE = re.compile(
    rf"\b(?P<qty>{_QUANTITY})\s+(?P<unit>days?|weeks?|months?|years?)\s+later\b"
    r"|\b(?P<phrase>time\s+jump)\b",
    re.IGNORECASE,
)
NEXT_DAY_RE = re.compile(
    r"\b(?:(?:the\s+)?(?:next|following)\s+(?:day|morning)|dawn\s+breaks"
    r"|next\s+day)\b",
    re.IGNORECASE,
)
SAME_DAY_LATER_RE = re.compile(
    r"\b(?:later\s+that\s+(?P<when>morning|afternoon|day|evening|night)"
    r"|moments\s+later"
    rf"|(?:{_QUANTITY})\s+(?:minutes?|hours?)\s+later)\b",
    re.IGNORECASE,
)
HEADING_LATER_RE = re.compile(r"\bLATER\b", re.IGNORECASE)
TIME_WORDS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(?:NIGHT|MIDNIGHT)\b", re.IGNORECASE), "Night"),
    (re.compile(r"\b(?:DAWN|SUNRISE)\b", re.IGNORECASE), "Dawn"),
    (re.compile(r"\bMORNING\b", re.IGNORECASE), "Morning"),
    (re.compile(r"\b(?:DUSK|SUNSET|MAGIC\s+HOUR)\b", re.IGNORECASE), "Dusk"),
    (re.compile(r"\bEVENING\b", re.IGNORECASE), "Evening"),
    (re.compile(r"\bAFTERNOON\b", re.IGNORECASE), "Afternoon"),
    (re.compile(r"\bDAY\b(?!\s*\d)", re.IGNORECASE), "Day"),
)


def infer_time_of_day(text: str) -> str | None:
    """Time-of-day label suggested by heading vocabulary."""
    for pattern, label in TIME_WORDS:
        if pattern.search(text or ""):
            return label
    return None


def _quantity(raw: str) -> str:
    raw = re.sub(r"\s+", " ", raw.strip().lower())
    if raw.isdigit():
        return raw
    if raw in _WORD_NUMBERS:
        return str(_WORD_NUMBERS[raw])
    return raw


def _clean_note(text: str) -> str:
    cleaned = re.sub(r"\s+", " ", text.strip()).lower()
    cleaned = re.sub(r"^end\s+of\s+", "end ", cleaned)
    cleaned = re.sub(r"flash\s*-?\s*back", "flashback", cleaned)
    match = re.match(rf"^({_QUANTITY})\s+(.*)$", cleaned)
    if match:
        cleaned = f"{_quantity(match.group(1))} {match.group(2)}"
    return cleaned[:1].upper() + cleaned[1:]


@dataclass
class StoryDayAssignment:
    """The sequencer's decision for one scene."""

    day: int
    time_of_day: str | None
    confidence: Confidence
    note: str | None = None
    rule: str = "inherit"

    @property
    def label(self) -> str:
        return f"Day {self.day}"


class StoryDaySequencer:
    """Single left-to-right pass assigning story days to scenes.

    State is only the previous scene's resolved day and time of day, so
    each call to ``assign`` depends on earlier scenes and never on later ones.
    """

    def __init__(self) -> None:
        """Initialize sequencer state."""
        self._day = 0
        self._time: str | None = None
        self._seen = 0

    def reset(self) -> None:
        """Forget all previous scenes."""
        self._day = 0
        self._time = None
        self._seen = 0

    def _decide(self, heading: str, probe: str) -> StoryDayAssignment:
        first = self._seen == 0
        previous_day = max(self._day, 1)

        on_screen = ON_SCREEN_RE.search(probe)
        if on_screen:
            n = on_screen.group("n")
            day = int(n) if n.isdigit() else SPELLED_NUMBERS[n.upper()]
            return StoryDayAssignment(
                day, None, Confidence.HIGH, rule="on_screen_marker"
            )

        parsed = parse_scene_heading(heading, strict=False)
        if parsed is not None and parsed.story_day is not None:
            return StoryDayAssignment(
                parsed.story_day, None, Confidence.HIGH, rule="heading_marker"
            )

        if not first and (
            CONTINUOUS_HEADING_RE.search(heading) or CONTINUOUS_BODY_RE.search(probe)
        ):
            return StoryDayAssignment(
                previous_day, self._time, Confidence.HIGH, rule="continuous"
            )

        non_linear = NON_LINEAR_RE.search(probe)
        if non_linear:
            return StoryDayAssignment(
                self._day + 1,
                None,
                Confidence.HIGH,
                note=_clean_note(non_linear.group("cue")),
                rule="non_linear",
            )

        jump = TIME_JUMP_RE.search(probe)
        if jump:
            if jump.group("phrase"):
                note = "Time jump"
            else:
                qty = _quantity(jump.group("qty"))
                note = f"{qty} {jump.group('unit').lower()} later"
            return StoryDayAssignment(
                self._day + 1, None, Confidence.HIGH, note=note, rule="time_jump"
            )

        if NEXT_DAY_RE.search(probe):
            return StoryDayAssignment(
                self._day + 1, "Morning", Confidence.HIGH, note="Next day",
                rule="next_day",
            )

        later = SAME_DAY_LATER_RE.search(probe)
        if not first and (later or HEADING_LATER_RE.search(heading)):
            when = later.group("when") if later else None
            time = when.capitalize() if when else infer_time_of_day(heading)
            return StoryDayAssignment(
                previous_day, time or self._time, Confidence.MEDIUM, rule="same_day"
            )

        if first:
            return StoryDayAssignment(1, None, Confidence.DEFAULT, rule="default")
        return StoryDayAssignment(previous_day, None, Confidence.ASSUMED)

    def assign(self, scene: Scene) -> StoryDayAssignment:
        """Decide the story day of the next scene and annotate it in place."""
        probe = f"{scene.heading}\n{(scene.raw_text or '')[:BODY_PROBE_LENGTH]}"
        result = self._decide(scene.heading, probe)
        if result.time_of_day is None:
            result.time_of_day = (
                infer_time_of_day(scene.heading)
                or infer_time_of_day(scene.time_of_day or "")
                or self._time
            )

        scene.story_day = result.label
        scene.story_day_note = result.note
        scene.story_day_confidence = result.confidence
        scene.time_of_day = result.time_of_day

        self._day = result.day
        self._time = result.time_of_day
        self._seen += 1
        return result

    def sequence(self, scenes: Iterable[Scene]) -> list[StoryDayAssignment]:
        """Assign story days to scenes in order, starting from a clean state."""
        self.reset()
        assignments = [self.assign(scene) for scene in scenes]
        logger.debug(
            "Sequenced story days",
            scene_count=len(assignments),
            story_days=self._day,
        )
        return assignments


def sequence_story_days(scenes: Iterable[Scene]) -> list[StoryDayAssignment]:
    """Convenience wrapper running a fresh ``StoryDaySequencer``."""
    return StoryDaySequencer().sequence(scenes)
