"""scriptcontinuity: continuity analysis for screenplays.

Parses plain screenplay text into scenes, works out which story day each
scene belongs to, and combines pattern extraction with a generative service
to build a master context of characters, appearance changes and timeline
for hair, makeup and wardrobe continuity.
"""

from scriptcontinuity.analysis import ContinuityAnalyzer, MasterContext
from scriptcontinuity.config import ContinuitySettings, get_logger, get_settings
from scriptcontinuity.exceptions import ContinuityError
from scriptcontinuity.llm import GenerativeClient
from scriptcontinuity.models import Scene, SceneHeading
from scriptcontinuity.parser import parse_scene_heading, parse_script
from scriptcontinuity.timeline import sequence_story_days

__version__ = "0.1.0"

__all__ = [
    "ContinuityAnalyzer",
    "ContinuityError",
    "ContinuitySettings",
    "GenerativeClient",
    "MasterContext",
    "Scene",
    "SceneHeading",
    "__version__",
    "get_logger",
    "get_settings",
    "parse_scene_heading",
    "parse_script",
    "sequence_story_days",
]
