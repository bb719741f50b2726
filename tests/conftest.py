"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from scriptcontinuity.config import ContinuitySettings, set_settings
from scriptcontinuity.llm import GenerativeClient, UsageTracker
from scriptcontinuity.parser import parse_script
from scriptcontinuity.timeline import sequence_story_days

SAMPLE_SCRIPT = """FADE IN:

EXT. FERRY - DAY 1

GWEN LAWSON (30s, tired eyes) stands at the rail beside PETER LAWSON.

GWEN
We should have stayed home.

PETER
Too late now.

INT. FARMHOUSE - KITCHEN - NIGHT

Peter cuts his hand on a broken glass. Blood drips onto the table.

GWEN
Let me see that.

INT. FARMHOUSE - BEDROOM - CONTINUOUS

Gwen wraps Peter's hand in a towel. Her hair is soaking wet from the rain.

EXT. FARMHOUSE - MORNING

The next morning. Peter chops wood with his bandaged hand.

PETER
It barely hurts.

INT. HOSPITAL - DAY

THREE WEEKS LATER

A DOCTOR examines Peter's scar.

DOCTOR
Healing nicely.
"""


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test",
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running (may need extended timeout)",
    )
    config.addinivalue_line(
        "markers",
        "unit: mark test as unit test",
    )


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Run every test against default settings with no service configured."""
    for var in ("LLM_ENDPOINT", "LLM_API_KEY", "LLM_MODEL", "LOG_LEVEL", "DEBUG"):
        monkeypatch.delenv(f"SCRIPTCONTINUITY_{var}", raising=False)
    settings = ContinuitySettings(
        llm_endpoint=None,
        llm_api_key=None,
        inter_call_delay=0.0,
        retry_fixed_delay=0.0,
    )
    set_settings(settings)
    yield settings

    import scriptcontinuity.config.settings as settings_module

    settings_module._settings = None


@pytest.fixture
def sample_script() -> str:
    """A five-scene screenplay with a cut, a continuous scene and a time jump."""
    return SAMPLE_SCRIPT


@pytest.fixture
def sample_scenes(sample_script):
    """Scenes of the sample script with story days assigned."""
    scenes = parse_script(sample_script)
    sequence_story_days(scenes)
    return scenes


@pytest.fixture
def mock_client():
    """Service client whose ``complete`` is an AsyncMock."""
    client = AsyncMock(spec=GenerativeClient)
    client.usage = UsageTracker()
    return client


@pytest.fixture
def cli_runner():
    """Typer CLI runner."""
    return CliRunner()
