"""Tests for character candidate extraction."""

import pytest

from scriptcontinuity.models import CharacterCategory
from scriptcontinuity.parser.entities import (
    categorize,
    extract_character_candidates,
    find_character_appearances,
    is_valid_character_name,
    normalize_character_name,
    speaking_names,
)


class TestNormalizeCharacterName:
    """Test canonical name normalization."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("JOHN (V.O.)", "John"),
            ("MARY (CONT'D)", "Mary"),
            ("PETER (O.S.)", "Peter"),
            ("GWEN LAWSON", "Gwen Lawson"),
            ("DR. SMITH", "Dr. Smith"),
            ("  ", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        """Test suffixes are stripped and names title-cased."""
        assert normalize_character_name(raw) == expected


class TestValidity:
    """Test rejection of non-character lines."""

    @pytest.mark.parametrize(
        "name",
        ["CONTINUED", "FADE OUT", "INT", "THREE WEEKS LATER", "X", "12 MONKEYS"],
    )
    def test_rejected(self, name):
        """Test transitions and fragments are not characters."""
        assert is_valid_character_name(name) is False

    @pytest.mark.parametrize("name", ["GWEN", "DR. SMITH", "OLD MAN"])
    def test_accepted(self, name):
        """Test ordinary names pass."""
        assert is_valid_character_name(name) is True


class TestCategorize:
    """Test category thresholds."""

    @pytest.mark.parametrize(
        ("count", "total", "spoke", "expected"),
        [
            (4, 10, True, CharacterCategory.LEAD),
            (4, 10, False, CharacterCategory.SUPPORTING),
            (1, 10, False, CharacterCategory.SUPPORTING),
            (1, 20, True, CharacterCategory.DAY_PLAYER),
            (1, 20, False, CharacterCategory.BACKGROUND),
            (0, 20, True, CharacterCategory.BACKGROUND),
            (3, 0, True, CharacterCategory.BACKGROUND),
        ],
    )
    def test_thresholds(self, count, total, spoke, expected):
        """Test LEAD, SUPPORTING, DAY_PLAYER and BACKGROUND boundaries."""
        assert categorize(count, total, spoke) is expected


class TestExtractCharacterCandidates:
    """Test extraction from the sample script."""

    def test_candidates_ranked_by_scene_count(self, sample_script):
        """Test candidates are sorted by scene count, then name."""
        candidates = extract_character_candidates(sample_script)
        names = [c.canonical_name for c in candidates]
        assert names == ["Peter", "Gwen", "Doctor", "Gwen Lawson"]

    def test_scene_membership_and_category(self, sample_script):
        """Test scene indices include plain mentions in action lines."""
        candidates = {
            c.canonical_name: c for c in extract_character_candidates(sample_script)
        }
        peter = candidates["Peter"]
        assert peter.scene_indices == [0, 1, 2, 3, 4]
        assert peter.has_dialogue is True
        assert peter.category is CharacterCategory.LEAD
        assert candidates["Gwen"].scene_indices == [0, 1, 2]

    def test_introduction_description(self, sample_script):
        """Test the parenthetical introduction is captured."""
        candidates = {
            c.canonical_name: c for c in extract_character_candidates(sample_script)
        }
        gwen_lawson = candidates["Gwen Lawson"]
        assert gwen_lawson.intro_description == "30s, tired eyes"
        assert gwen_lawson.has_dialogue is False
        assert gwen_lawson.category is CharacterCategory.SUPPORTING

    def test_time_jump_line_is_not_a_character(self, sample_script):
        """Test an all-caps time jump card is not taken for a speaker."""
        names = {c.canonical_name for c in extract_character_candidates(sample_script)}
        assert "Three Weeks Later" not in names

    def test_empty_script(self):
        """Test empty input yields no candidates."""
        assert extract_character_candidates("") == []


class TestAppearances:
    """Test mention search helpers."""

    def test_find_character_appearances(self, sample_scenes):
        """Test whole-word, case-insensitive scene search."""
        assert find_character_appearances("gwen", sample_scenes) == [0, 1, 2]
        assert find_character_appearances("Pete", sample_scenes) == []
        assert find_character_appearances("  ", sample_scenes) == []

    def test_speaking_names(self, sample_scenes):
        """Test dialogue headers in one scene body."""
        assert speaking_names(sample_scenes[0].raw_text) == {"gwen", "peter"}
        assert speaking_names(sample_scenes[2].raw_text) == set()
