"""Tests for centralized path management."""

from pathlib import Path

from agentwatch.config.paths import (
    ENV_VAR,
    get_agentwatch_home,
    get_config_path,
    get_hooks_path,
    get_logs_path,
    get_managed_sessions_path,
    get_process_logs_path,
    get_profiles_path,
    get_transcript_index_path,
)


class TestGetAgentwatchHome:
    """Tests for get_agentwatch_home()."""

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv(ENV_VAR, raising=False)
        get_agentwatch_home.cache_clear()

        assert get_agentwatch_home() == Path.home() / ".agentwatch"

    def test_respects_env_var(self, monkeypatch, tmp_path):
        custom_path = tmp_path / "custom-home"
        monkeypatch.setenv(ENV_VAR, str(custom_path))
        get_agentwatch_home.cache_clear()

        assert get_agentwatch_home() == custom_path.resolve()

    def test_expands_tilde_in_env_var(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "~/my-agentwatch")
        get_agentwatch_home.cache_clear()

        assert get_agentwatch_home() == (Path.home() / "my-agentwatch").resolve()


class TestDerivedPaths:
    """Tests for paths derived from the home directory."""

    def test_layout(self, agentwatch_home):
        assert get_config_path() == agentwatch_home / "config.toml"
        assert get_hooks_path() == agentwatch_home / "hooks"
        assert get_managed_sessions_path() == agentwatch_home / "sessions"
        assert get_process_logs_path() == agentwatch_home / "processes"
        assert get_transcript_index_path() == (
            agentwatch_home / "transcripts" / "index.jsonl"
        )
        assert get_profiles_path() == agentwatch_home / "contrib" / "profiles.json"
        assert get_logs_path() == agentwatch_home / "logs"
