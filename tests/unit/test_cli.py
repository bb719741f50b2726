"""Tests for the command line interface."""

import json
import re
from unittest.mock import AsyncMock, Mock, patch

import pytest

from scriptcontinuity import __version__
from scriptcontinuity.cli.main import app
from scriptcontinuity.exceptions import AuthFailedError
from scriptcontinuity.llm import GenerativeClient
from scriptcontinuity.llm.base import BaseCompletionProvider
from scriptcontinuity.llm.models import CompletionResponse, LLMProvider


def strip_ansi_codes(text: str) -> str:
    """Strip ANSI escape sequences and spinner characters from text."""
    text = re.compile(r"\x1b\[[0-9;]*[A-Za-z]").sub("", text)
    return re.compile(r"[⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏]").sub("", text)


@pytest.fixture
def script_file(tmp_path, sample_script):
    """Sample screenplay on disk."""
    path = tmp_path / "ferry.txt"
    path.write_text(sample_script, encoding="utf-8")
    return path


@pytest.fixture
def service_config(tmp_path):
    """Config file pointing at a (fake) service."""
    path = tmp_path / "scriptcontinuity.yaml"
    path.write_text(
        "llm_endpoint: http://llm.test/v1\n"
        "llm_api_key: test-key\n"  # pragma: allowlist secret
    )
    return path


class TestVersion:
    """Test the version command."""

    def test_plain(self, cli_runner):
        """Test the human-readable version."""
        result = cli_runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert f"scriptcontinuity v{__version__}" in strip_ansi_codes(result.output)

    def test_json(self, cli_runner):
        """Test the JSON version."""
        result = cli_runner.invoke(app, ["version", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "name": "scriptcontinuity",
            "version": __version__,
        }


class TestScenesCommand:
    """Test the scenes command."""

    def test_json(self, cli_runner, script_file):
        """Test scenes are listed with story days."""
        result = cli_runner.invoke(app, ["scenes", str(script_file), "--json"])
        assert result.exit_code == 0
        rows = json.loads(result.stdout)
        assert [r["story_day"] for r in rows] == [
            "Day 1",
            "Day 1",
            "Day 1",
            "Day 2",
            "Day 3",
        ]
        assert rows[0]["number"] == "1"
        assert rows[1]["setting"] == "INT"
        assert rows[3]["note"] == "Next day"
        assert rows[1]["confidence"] == "assumed"

    def test_table(self, cli_runner, script_file):
        """Test the table output names the file."""
        result = cli_runner.invoke(app, ["scenes", str(script_file)])
        assert result.exit_code == 0
        output = strip_ansi_codes(result.output)
        assert "ferry.txt: 5 scenes" in output
        assert "Day 3" in output

    def test_missing_file(self, cli_runner, tmp_path):
        """Test a missing script exits with status 1."""
        result = cli_runner.invoke(
            app, ["scenes", str(tmp_path / "none.txt"), "--json"]
        )
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["success"] is False
        assert "Script file not found" in payload["error"]

    def test_no_headings(self, cli_runner, tmp_path):
        """Test a file without headings is rejected with a hint."""
        path = tmp_path / "notes.txt"
        path.write_text("Just some notes.\n")
        result = cli_runner.invoke(app, ["scenes", str(path)])
        assert result.exit_code == 1
        assert "No scene headings found" in strip_ansi_codes(result.output)


class TestAnalyzeCommand:
    """Test the analyze command."""

    def test_offline_json(self, cli_runner, script_file):
        """Test pattern-only analysis prints a master context."""
        result = cli_runner.invoke(
            app, ["analyze", str(script_file), "--offline", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["totalScenes"] == 5
        assert data["degraded"] is True
        assert "Peter" in data["characters"]
        assert data["storyStructure"]["totalDays"] == 2

    def test_unconfigured_runs_offline(self, cli_runner, script_file):
        """Test a missing endpoint falls back to offline with a notice."""
        result = cli_runner.invoke(app, ["analyze", str(script_file)])
        assert result.exit_code == 0
        output = strip_ansi_codes(result.output)
        assert "running offline analysis" in output
        assert "5 scenes, 2 story days (heuristic)" in output
        assert "Characters" in output
        assert "Peter" in output
        assert "Pattern-only results for" in output
        assert "Service calls" not in output

    def test_cache_dir(self, cli_runner, script_file, tmp_path):
        """Test analyses are written to the cache directory."""
        cache_dir = tmp_path / "cache"
        args = ["analyze", str(script_file), "--offline", "--json"]
        first = cli_runner.invoke(app, [*args, "--cache-dir", str(cache_dir)])
        assert first.exit_code == 0
        assert len(list(cache_dir.glob("master-context_*.json"))) == 1

        second = cli_runner.invoke(app, [*args, "--cache-dir", str(cache_dir)])
        assert json.loads(second.stdout) == json.loads(first.stdout)

    def test_missing_config(self, cli_runner, script_file, tmp_path):
        """Test a missing config file is reported."""
        result = cli_runner.invoke(
            app,
            ["analyze", str(script_file), "--config", str(tmp_path / "x.yaml")],
        )
        assert result.exit_code == 1
        assert "Config file not found" in strip_ansi_codes(result.output)


class TestConnectionCommand:
    """Test the test-connection command."""

    def test_unconfigured(self, cli_runner):
        """Test a missing endpoint fails with the configuration error."""
        result = cli_runner.invoke(app, ["test-connection"])
        assert result.exit_code == 1
        output = strip_ansi_codes(result.output)
        assert "Connection failed" in output
        assert "endpoint not configured" in output

    def test_success(self, cli_runner, service_config):
        """Test a working endpoint prints the reply."""
        provider = Mock(spec=BaseCompletionProvider)
        provider.provider_type = LLMProvider.OPENAI_COMPATIBLE
        provider.request = AsyncMock(
            return_value=CompletionResponse(
                id="1",
                model="m",
                choices=[
                    {"message": {"role": "assistant", "content": '{"ok": true}'}}
                ],
                provider=LLMProvider.OPENAI_COMPATIBLE,
            )
        )
        provider.aclose = AsyncMock()
        client = GenerativeClient(provider)

        with patch.object(GenerativeClient, "from_settings", return_value=client):
            result = cli_runner.invoke(
                app, ["test-connection", "--config", str(service_config)]
            )

        assert result.exit_code == 0
        output = strip_ansi_codes(result.output)
        assert "Connected to http://llm.test/v1" in output
        assert '{"ok": true}' in output
        provider.aclose.assert_awaited_once()

    def test_service_error_shown_raw(self, cli_runner, service_config):
        """Test the service's own error text reaches the user."""
        provider = Mock(spec=BaseCompletionProvider)
        provider.provider_type = LLMProvider.OPENAI_COMPATIBLE
        provider.request = AsyncMock(
            side_effect=AuthFailedError(body="invalid api key")
        )
        provider.aclose = AsyncMock()
        client = GenerativeClient(provider)

        with patch.object(GenerativeClient, "from_settings", return_value=client):
            result = cli_runner.invoke(
                app, ["test-connection", "--config", str(service_config)]
            )

        assert result.exit_code == 1
        output = strip_ansi_codes(result.output)
        assert "Authentication failed" in output
        assert "invalid api key" in output
