"""Story day sequencing, timeline buckets and healing progressions."""

from scriptcontinuity.timeline.heuristic import build_heuristic_timeline
from scriptcontinuity.timeline.progression import (
    attach_progressions,
    build_progression,
)
from scriptcontinuity.timeline.sequencer import (
    StoryDayAssignment,
    StoryDaySequencer,
    sequence_story_days,
)

__all__ = [
    "StoryDayAssignment",
    "StoryDaySequencer",
    "attach_progressions",
    "build_heuristic_timeline",
    "build_progression",
    "sequence_story_days",
]
