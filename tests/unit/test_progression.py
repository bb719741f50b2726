"""Tests for healing progressions and affected scene ranges."""

import pytest

from scriptcontinuity.models import ContinuityEvent, EventType
from scriptcontinuity.timeline.progression import (
    OPEN_ENDED_SPAN,
    affected_range,
    attach_progressions,
    build_progression,
    healing_kind,
)


def _event(event_type, start, end=None, description=""):
    return ContinuityEvent(
        id=f"evt-{start}",
        type=event_type,
        start_scene=start,
        end_scene=end,
        description=description,
    )


class TestHealingKind:
    """Test stage table selection."""

    @pytest.mark.parametrize(
        ("description", "kind"),
        [
            ("Peter cuts his hand", "cut"),
            ("a nasty gash on the arm", "cut"),
            ("bruised ribs", "bruise"),
            ("black eye", "bruise"),
            ("burned by the stove", "burn"),
            ("shot in the shoulder", "wound"),
            (None, "wound"),
        ],
    )
    def test_kind(self, description, kind):
        """Test keywords pick the table; anything else is a wound."""
        assert healing_kind(description) == kind


class TestBuildProgression:
    """Test stage lists."""

    def test_cut_stages(self):
        """Test the cut table offsets from the start scene."""
        stages = build_progression(EventType.INJURY, "a cut", 3, 100)
        assert [(s.label, s.scene_offset, s.scene_index) for s in stages] == [
            ("Fresh/bleeding", 0, 3),
            ("Scabbed", 2, 5),
            ("Healing/pink", 5, 8),
            ("Faint scar", 10, 13),
        ]

    def test_stages_past_script_end_are_dropped(self):
        """Test stages beyond the last scene are not produced."""
        stages = build_progression(EventType.INJURY, "a cut", 3, 7)
        assert [s.label for s in stages] == ["Fresh/bleeding", "Scabbed"]

    def test_non_injury_has_no_progression(self):
        """Test only injuries heal."""
        assert build_progression(EventType.WEATHER, "soaked", 0, 10) == []


class TestAffectedRange:
    """Test visible scene ranges."""

    def test_explicit_end(self):
        """Test an explicit end scene bounds the range."""
        assert affected_range(_event(EventType.HAIR, 2, 5), 20) == [2, 3, 4, 5]

    def test_open_ended_injury(self):
        """Test an unresolved injury lasts the open-ended span."""
        scenes = affected_range(_event(EventType.INJURY, 1), 50)
        assert scenes == list(range(1, 2 + OPEN_ENDED_SPAN))

    def test_open_ended_injury_clamped(self):
        """Test the range never runs past the script."""
        assert affected_range(_event(EventType.INJURY, 3), 5) == [3, 4]

    def test_open_ended_other(self):
        """Test other events without end cover only their start scene."""
        assert affected_range(_event(EventType.WEATHER, 4), 10) == [4]

    def test_end_before_start(self):
        """Test an end scene before the start collapses to the start."""
        assert affected_range(_event(EventType.MAKEUP, 4, 2), 10) == [4]


def test_attach_progressions_fills_in_place():
    """Test both fields are set on every event."""
    events = [
        _event(EventType.INJURY, 0, description="bruise"),
        _event(EventType.HAIR, 1),
    ]
    result = attach_progressions(events, 3)
    assert result[0] is events[0]
    assert [s.label for s in events[0].progression] == ["Fresh/red", "Purple/blue"]
    assert events[0].affected_scenes == [0, 1, 2]
    assert events[1].progression == []
    assert events[1].affected_scenes == [1]
