"""Scene heading parsing.

Three heading shapes are recognised, tried in this order:

* number first: ``12A INT. FARMHOUSE - KITCHEN - DAY``
  (a matching number repeated at the end, as shooting scripts print it,
  is dropped)
* number last: ``INT. FARMHOUSE - KITCHEN - DAY - 12A``
* no number: ``INT. FARMHOUSE - KITCHEN - DAY``

``12B OMITTED`` short-circuits all of them.
"""

from __future__ import annotations

import re

from scriptcontinuity.models import SceneHeading, Setting

TIME_OF_DAY_VOCABULARY = (
    "MOMENTS LATER",
    "CONTINUOUS",
    "AFTERNOON",
    "MORNING",
    "EVENING",
    "NIGHT",
    "DAWN",
    "DUSK",
    "LATER",
    "SAME",
    "DAY",
)

_TIME = "|".join(TIME_OF_DAY_VOCABULARY)
_NUMBER = r"\d+[A-Z]{0,2}"
_SETTING = r"INT\.?\s*/\s*EXT|EXT\.?\s*/\s*INT|INT\.EXT|I\s*/\s*E|INT|EXT"

SPELLED_NUMBERS = {
    "ONE": 1,
    "TWO": 2,
    "THREE": 3,
    "FOUR": 4,
    "FIVE": 5,
    "SIX": 6,
    "SEVEN": 7,
    "EIGHT": 8,
    "NINE": 9,
    "TEN": 10,
}
_SPELLED = "|".join(SPELLED_NUMBERS)

OMITTED_RE = re.compile(
    rf"^(?:(?P<number>{_NUMBER})\.?\s+)?OMIT(?:TED)?\.?"
    rf"(?:\s+(?P<trail>{_NUMBER}))?$",
    re.IGNORECASE,
)
PREFIXED_RE = re.compile(
    rf"^(?P<number>{_NUMBER})\.?\s+(?P<body>.+)$", re.IGNORECASE
)
SUFFIXED_RE = re.compile(
    rf"^(?P<body>.+?)(?:\s+[-–—]+\s*|\s{{2,}})(?P<number>{_NUMBER})\.?$",
    re.IGNORECASE,
)
SETTING_RE = re.compile(
    rf"^(?P<setting>{_SETTING})(?:\.\s*|\s+)(?P<rest>\S.*)$", re.IGNORECASE
)
SEGMENT_SEPARATOR_RE = re.compile(r"\s+[-–—]+\s+|\s*[-–—]{2,}\s*")
TIME_START_RE = re.compile(
    rf"^(?P<time>{_TIME})\b\.?(?P<after>.*)$", re.IGNORECASE
)
TRAILING_TIME_RE = re.compile(
    rf"^(?P<location>.+?)[\s.,]+(?P<time>{_TIME})\.?$", re.IGNORECASE
)
STORY_DAY_RE = re.compile(
    rf"\(?\s*\b(?:STORY\s*DAY\s*[-#]?\s*(?P<story>\d+|{_SPELLED})"
    rf"|DAY\s*[-#]?\s*(?P<day>\d+|{_SPELLED})"
    rf"|D\s*[-#]?\s*(?P<short>\d+))\b\s*\)?",
    re.IGNORECASE,
)


def normalize_setting(token: str) -> Setting:
    """Collapse the many INT/EXT spellings onto the three canonical forms."""
    upper = re.sub(r"[\s.]", "", token.upper())
    has_int = "INT" in upper or upper.startswith("I/")
    has_ext = "EXT" in upper or upper.endswith("/E")
    if has_int and has_ext:
        return Setting.INT_EXT
    return Setting.EXT if has_ext else Setting.INT


def _story_day_value(match: re.Match[str]) -> int:
    raw = match.group("story") or match.group("day") or match.group("short")
    if raw.isdigit():
        return int(raw)
    return SPELLED_NUMBERS[raw.upper()]


def extract_story_day(text: str) -> tuple[int | None, str]:
    """Find a story-day marker and return it with the marker removed.

    Args:
        text: Heading fragment such as ``"FERRY (DAY 1)"`` or ``"NIGHT - D3"``

    Returns:
        Tuple of (story day or None, text without the marker)
    """
    match = STORY_DAY_RE.search(text)
    if not match:
        return None, text
    cleaned = f"{text[: match.start()]} {text[match.end() :]}"
    return _story_day_value(match), _clean_fragment(cleaned)


def _clean_fragment(text: str) -> str:
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip(" \t-–—,.()")


def _clean_line(line: str) -> str:
    # Revision marks are printed as asterisks in the margins
    return line.strip().strip("*").strip()


def _parse_body(
    raw: str, body: str, number: str | None, strict: bool
) -> SceneHeading | None:
    match = SETTING_RE.match(body.strip())
    if not match:
        return None
    setting = normalize_setting(match.group("setting"))
    rest = match.group("rest").strip()

    segments = [s for s in SEGMENT_SEPARATOR_RE.split(rest) if s.strip()]
    time_of_day: str | None = None
    location_parts = segments
    tail = ""
    for idx in range(len(segments) - 1, 0, -1):
        time_match = TIME_START_RE.match(segments[idx].strip())
        if time_match:
            time_of_day = time_match.group("time").upper()
            location_parts = segments[:idx]
            tail = " - ".join(s.strip() for s in segments[idx:])
            break

    if time_of_day is None:
        trailing = TRAILING_TIME_RE.match(rest)
        if trailing:
            time_of_day = trailing.group("time").upper()
            location_parts = [trailing.group("location")]
            tail = time_of_day
        elif strict:
            return None

    tail_day, _ = extract_story_day(tail)
    location_day, location = extract_story_day(
        " - ".join(s.strip() for s in location_parts)
    )
    story_day = tail_day if tail_day is not None else location_day
    location = _clean_fragment(location)

    if not location:
        if strict:
            return None
        location = None

    return SceneHeading(
        raw=raw,
        number=number.upper() if number else None,
        setting=setting,
        location=location,
        time_of_day=time_of_day,
        story_day=story_day,
    )


def parse_scene_heading(line: str, strict: bool = True) -> SceneHeading | None:
    """Parse one line as a scene heading.

    Args:
        line: A single line of script text
        strict: When True (the default) a time-of-day token and a location are
            required. When False, ``INT. KITCHEN`` is accepted with no time.

    Returns:
        Parsed heading, or None if the line is not a scene heading
    """
    if not line:
        return None
    text = _clean_line(line)
    if not text:
        return None

    omitted = OMITTED_RE.match(text)
    if omitted:
        number = omitted.group("number") or omitted.group("trail")
        return SceneHeading(
            raw=line, number=number.upper() if number else None, is_omitted=True
        )

    prefixed = PREFIXED_RE.match(text)
    if prefixed and SETTING_RE.match(prefixed.group("body")):
        number = prefixed.group("number")
        body = re.sub(rf"\s+{re.escape(number)}\.?$", "", prefixed.group("body"))
        return _parse_body(line, body, number, strict)

    suffixed = SUFFIXED_RE.match(text)
    if suffixed and SETTING_RE.match(suffixed.group("body")):
        result = _parse_body(
            line, suffixed.group("body"), suffixed.group("number"), strict
        )
        if result is not None:
            return result

    return _parse_body(line, text, None, strict)


def is_scene_heading(line: str) -> bool:
    """Whether the line parses as a strict scene heading or an omission."""
    return parse_scene_heading(line) is not None
