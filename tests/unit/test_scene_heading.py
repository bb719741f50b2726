"""Tests for scene heading parsing."""

import pytest

from scriptcontinuity.models import Setting
from scriptcontinuity.parser.scene_heading import (
    extract_story_day,
    is_scene_heading,
    normalize_setting,
    parse_scene_heading,
)


class TestParseSceneHeading:
    """Test the three heading shapes and omissions."""

    def test_plain_heading(self):
        """Test a heading without scene number."""
        heading = parse_scene_heading("INT. FARMHOUSE - KITCHEN - NIGHT")
        assert heading is not None
        assert heading.number is None
        assert heading.setting is Setting.INT
        assert heading.location == "FARMHOUSE - KITCHEN"
        assert heading.time_of_day == "NIGHT"
        assert heading.story_day is None
        assert heading.is_omitted is False

    def test_number_first_with_story_day(self):
        """Test a leading scene number and a trailing story day marker."""
        heading = parse_scene_heading("12 INT. FERRY - DAY 3")
        assert heading is not None
        assert heading.number == "12"
        assert heading.location == "FERRY"
        assert heading.time_of_day == "DAY"
        assert heading.story_day == 3

    def test_repeated_scene_number_is_dropped(self):
        """Test shooting-script numbers printed on both sides."""
        heading = parse_scene_heading("7 EXT. BEACH - DUSK 7")
        assert heading is not None
        assert heading.number == "7"
        assert heading.location == "BEACH"
        assert heading.time_of_day == "DUSK"
        assert heading.story_day is None

    def test_number_last(self):
        """Test a lettered scene number after the heading."""
        heading = parse_scene_heading("INT. KITCHEN - DAY - 12A")
        assert heading is not None
        assert heading.number == "12A"
        assert heading.location == "KITCHEN"
        assert heading.time_of_day == "DAY"

    @pytest.mark.parametrize(
        ("line", "number"),
        [
            ("12B OMITTED", "12B"),
            ("OMITTED", None),
            ("14 OMIT", "14"),
        ],
    )
    def test_omitted(self, line, number):
        """Test omitted scene placeholders."""
        heading = parse_scene_heading(line)
        assert heading is not None
        assert heading.is_omitted is True
        assert heading.number == number

    def test_mixed_setting(self):
        """Test INT/EXT spellings collapse to one setting."""
        heading = parse_scene_heading("EXT./INT. CAR - MOVING - DAY")
        assert heading is not None
        assert heading.setting is Setting.INT_EXT
        assert heading.location == "CAR - MOVING"

    def test_story_day_in_location_parenthetical(self):
        """Test a story day marker inside the location text."""
        heading = parse_scene_heading("INT. HOSPITAL ROOM (DAY 4) - NIGHT")
        assert heading is not None
        assert heading.location == "HOSPITAL ROOM"
        assert heading.time_of_day == "NIGHT"
        assert heading.story_day == 4

    def test_spelled_story_day(self):
        """Test spelled-out story day numbers."""
        heading = parse_scene_heading("EXT. FIELD - STORY DAY TWO - DAWN")
        assert heading is not None
        assert heading.location == "FIELD"
        assert heading.story_day == 2

    def test_missing_time_requires_non_strict(self):
        """Test strict mode rejects a heading with no time of day."""
        assert parse_scene_heading("INT. KITCHEN") is None
        heading = parse_scene_heading("INT. KITCHEN", strict=False)
        assert heading is not None
        assert heading.location == "KITCHEN"
        assert heading.time_of_day is None

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "   ",
            "Mary walks into the kitchen.",
            "INTERIOR DESIGN - DAY",
            "GWEN",
        ],
    )
    def test_not_a_heading(self, line):
        """Test ordinary lines are rejected."""
        assert parse_scene_heading(line) is None
        assert is_scene_heading(line) is False


class TestHelpers:
    """Test setting normalization and story day extraction."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("INT", Setting.INT),
            ("EXT.", Setting.EXT),
            ("INT./EXT", Setting.INT_EXT),
            ("I/E", Setting.INT_EXT),
        ],
    )
    def test_normalize_setting(self, token, expected):
        """Test the canonical setting forms."""
        assert normalize_setting(token) is expected

    def test_extract_story_day_removes_marker(self):
        """Test the marker is returned and removed from the text."""
        day, rest = extract_story_day("FERRY (DAY 1)")
        assert day == 1
        assert rest == "FERRY"

    def test_extract_short_marker(self):
        """Test the D3 shorthand."""
        day, _ = extract_story_day("NIGHT - D3")
        assert day == 3

    def test_extract_without_marker(self):
        """Test text without a marker is returned unchanged."""
        assert extract_story_day("KITCHEN") == (None, "KITCHEN")
