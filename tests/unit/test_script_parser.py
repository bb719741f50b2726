"""Tests for splitting screenplay text into scenes."""

from scriptcontinuity.models import Setting
from scriptcontinuity.parser.script import (
    heading_for_line,
    normalize_script_text,
    parse_script,
)


class TestParseScript:
    """Test scene splitting."""

    def test_sample_script_scenes(self, sample_script):
        """Test every heading starts a scene with a 0-based index."""
        scenes = parse_script(sample_script)
        assert [s.index for s in scenes] == [0, 1, 2, 3, 4]
        assert scenes[0].heading == "EXT. FERRY - DAY 1"
        assert scenes[0].setting is Setting.EXT
        assert scenes[1].location == "FARMHOUSE - KITCHEN"
        assert scenes[2].time_of_day == "CONTINUOUS"

    def test_text_before_first_heading_is_ignored(self, sample_script):
        """Test the title page and FADE IN are not part of any scene."""
        scenes = parse_script(sample_script)
        assert all("FADE IN" not in s.text for s in scenes)

    def test_scene_body(self, sample_script):
        """Test body text stays with its scene."""
        scenes = parse_script(sample_script)
        assert "cuts his hand" in scenes[1].raw_text
        assert "cuts his hand" not in scenes[2].raw_text
        assert scenes[4].raw_text.startswith("THREE WEEKS LATER")

    def test_no_headings(self):
        """Test text without headings yields no scenes."""
        assert parse_script("Just some prose.\nNothing else.") == []

    def test_omitted_scene(self):
        """Test omitted placeholders become scenes flagged as omitted."""
        scenes = parse_script("1 INT. HOUSE - DAY\nText.\n\n2 OMITTED\n")
        assert len(scenes) == 2
        assert scenes[1].is_omitted is True
        assert scenes[1].number == "2"

    def test_all_caps_heading_without_time(self):
        """Test an all-caps heading with no time of day still splits."""
        scenes = parse_script("INT. BARN\nHay everywhere.\n")
        assert len(scenes) == 1
        assert scenes[0].location == "BARN"

    def test_display_number_falls_back_to_position(self):
        """Test unnumbered scenes display their 1-based position."""
        scenes = parse_script("INT. A - DAY\n\nINT. B - NIGHT\n")
        assert [s.display_number for s in scenes] == ["1", "2"]


class TestNormalization:
    """Test repair of text-extraction artefacts."""

    def test_split_setting_is_joined(self):
        """Test INT split from its period is rejoined."""
        assert normalize_script_text("INT\n. KITCHEN - DAY") == "INT. KITCHEN - DAY"

    def test_windows_newlines(self):
        """Test CRLF line endings become LF."""
        assert normalize_script_text("a\r\nb") == "a\nb"

    def test_heading_for_mixed_case_line(self):
        """Test non-strict parsing only applies to all-caps lines."""
        assert heading_for_line("Int. kitchen") is None
        assert heading_for_line("INT. KITCHEN") is not None
