"""Shared test fixtures and factories."""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from agentwatch.config.paths import ENV_VAR, get_agentwatch_home

# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def agentwatch_home(monkeypatch, tmp_path: Path) -> Iterator[Path]:
    """Point AGENTWATCH_HOME at a temporary directory for every test."""
    home = tmp_path / "agentwatch-home"
    monkeypatch.setenv(ENV_VAR, str(home))
    for var in (
        "AGENTWATCH_LOG_LEVEL",
        "AGENTWATCH_PROFILE",
        "AGENTWATCH_CONTRIBUTOR_ID",
    ):
        monkeypatch.delenv(var, raising=False)
    # Keep ./agentwatch.toml lookups inside the test directory
    monkeypatch.chdir(tmp_path)
    get_agentwatch_home.cache_clear()
    yield get_agentwatch_home()
    get_agentwatch_home.cache_clear()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def config_toml_content() -> str:
    """Valid TOML config content."""
    return """
[sharing]
profile = "metadata-only"
bundle_format = "jsonl"

[sharing.contributor]
contributor_id = "tester"

[correlation]
time_window_ms = 5000

[[projects]]
id = "web"
name = "Web App"
paths = ["/work/web"]
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


# =============================================================================
# Record Factories
# =============================================================================


def make_hook_session(session_id: str = "s1", **overrides: Any) -> dict[str, Any]:
    """Hook session record as the hook store writes it (camelCase)."""
    record: dict[str, Any] = {
        "sessionId": session_id,
        "cwd": "/proj",
        "startTime": 1_000_000,
        "toolCount": 0,
    }
    record.update(overrides)
    return record


def make_transcript(transcript_id: str = "a", **overrides: Any) -> dict[str, Any]:
    """Transcript index entry (camelCase)."""
    record: dict[str, Any] = {
        "id": transcript_id,
        "path": f"/t/{transcript_id}.jsonl",
        "projectDir": "/proj",
        "startTime": 1_000_000,
        "messageCount": 0,
    }
    record.update(overrides)
    return record


def make_tool_usage(
    tool_use_id: str, timestamp: int, session_id: str = "s1", **overrides: Any
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "toolUseId": tool_use_id,
        "toolName": "Bash",
        "timestamp": timestamp,
        "sessionId": session_id,
    }
    record.update(overrides)
    return record


# =============================================================================
# CLI Test Helpers
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})
