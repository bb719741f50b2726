"""Tests for prompt construction."""

from scriptcontinuity.analysis.prompts import (
    MAX_SEED_NAMES,
    TRUNCATION_MARKER,
    build_character_prompt,
    build_scene_structure_prompt,
    build_timeline_prompt,
    summarize_scenes,
)


class TestSummarizeScenes:
    """Test scene summaries."""

    def test_numbered_from_one(self, sample_scenes):
        """Test entries use 1-based scene numbers."""
        summary = summarize_scenes(sample_scenes, 20, 10_000)
        assert summary.startswith("[Scene 1] EXT. FERRY - DAY 1\n")
        assert "[Scene 5] INT. HOSPITAL - DAY" in summary
        assert summary.count("\n---\n") == 4

    def test_truncated(self, sample_scenes):
        """Test long summaries are cut with a marker."""
        summary = summarize_scenes(sample_scenes, 500, 100)
        assert summary.endswith(TRUNCATION_MARKER)
        assert len(summary) == 100 + len(TRUNCATION_MARKER)

    def test_unnumbered(self, sample_scenes):
        """Test the scene prefix can be left out."""
        summary = summarize_scenes(sample_scenes[:1], 0, 10_000, numbered=False)
        assert summary == "EXT. FERRY - DAY 1\n"


class TestPromptBuilders:
    """Test prompt text."""

    def test_chunk_note_only_when_split(self):
        """Test multi-chunk prompts say which chunk they hold."""
        assert "chunk 2 of 3" in build_scene_structure_prompt("INT. A - DAY", 1, 3)
        assert "chunk" not in build_scene_structure_prompt("INT. A - DAY", 0, 1)

    def test_chunk_note_states_first_scene(self):
        """Test later chunks say where unnumbered scenes start."""
        prompt = build_scene_structure_prompt("INT. A - DAY", 1, 3, first_scene=7)
        assert "numbered from 7" in prompt

    def test_seed_names_capped(self):
        """Test at most MAX_SEED_NAMES seed names are listed."""
        names = [f"NAME{i}" for i in range(MAX_SEED_NAMES + 10)]
        prompt = build_character_prompt("summary", names, 12)
        assert f"NAME{MAX_SEED_NAMES - 1}" in prompt
        assert f"NAME{MAX_SEED_NAMES}," not in prompt
        assert "TOTAL SCENES: 12" in prompt

    def test_timeline_lists_story_days(self, sample_scenes):
        """Test the timeline prompt shows sequencer days beside headings."""
        prompt = build_timeline_prompt(sample_scenes)
        assert "Scene 4: EXT. FARMHOUSE - MORNING [Day 2]" in prompt
