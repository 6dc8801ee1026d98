"""Tests for configuration loading and models."""

import pytest
from pydantic import ValidationError

from agentwatch.config import (
    AgentwatchConfig,
    ConfigError,
    LoggingConfig,
    SharingConfig,
    find_config_path,
    load_config,
)


class TestSharingConfig:
    """Tests for SharingConfig model."""

    def test_defaults(self, agentwatch_home):
        config = SharingConfig()
        assert config.profile is None
        assert config.bundle_format == "auto"
        assert config.preview_chars == 500
        assert config.export_dir == agentwatch_home / "exports"
        assert config.contributor.contributor_id == "anonymous"
        assert config.contributor.license == "CC-BY-4.0"

    def test_invalid_bundle_format(self):
        with pytest.raises(ValidationError):
            SharingConfig(bundle_format="rar")


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_defaults(self):
        config = LoggingConfig()
        assert config.level is None
        assert config.log_to_file is False
        assert config.retention_days == 7
        assert config.redact_patterns == []


class TestAgentwatchConfig:
    """Tests for the root config model."""

    def test_defaults(self):
        config = AgentwatchConfig()
        assert config.projects == []
        assert config.correlation.time_window_ms == 5000

    def test_duplicate_project_ids(self):
        with pytest.raises(ValidationError):
            AgentwatchConfig.model_validate(
                {
                    "projects": [
                        {"id": "web", "name": "Web"},
                        {"id": "web", "name": "Web again"},
                    ]
                }
            )

    def test_get_project(self):
        config = AgentwatchConfig.model_validate(
            {"projects": [{"id": "web", "name": "Web", "paths": ["/work/web"]}]}
        )

        assert config.get_project("web").paths == ["/work/web"]
        with pytest.raises(ConfigError, match="Available: web"):
            config.get_project("api")


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_from_file(self, config_file):
        config = load_config(config_file)

        assert config.sharing.profile == "metadata-only"
        assert config.sharing.bundle_format == "jsonl"
        assert config.sharing.contributor.contributor_id == "tester"
        assert config.projects[0].id == "web"

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.toml")

    def test_invalid_toml(self, tmp_path):
        config_path = tmp_path / "invalid.toml"
        config_path.write_text("not valid toml [[[")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(config_path)

    def test_invalid_config_values(self, tmp_path):
        config_path = tmp_path / "bad.toml"
        config_path.write_text("""
[correlation]
time_window_ms = -1
""")

        with pytest.raises(ConfigError):
            load_config(config_path)

    def test_no_file_gives_defaults(self):
        config = load_config()

        assert config == AgentwatchConfig()

    def test_home_config_is_found(self, agentwatch_home):
        agentwatch_home.mkdir(parents=True)
        (agentwatch_home / "config.toml").write_text('[sharing]\nprofile = "moderate"\n')

        assert load_config().sharing.profile == "moderate"

    def test_working_directory_config_wins(self, tmp_path, agentwatch_home):
        agentwatch_home.mkdir(parents=True)
        (agentwatch_home / "config.toml").write_text('[sharing]\nprofile = "moderate"\n')
        (tmp_path / "agentwatch.toml").write_text('[sharing]\nprofile = "full-content"\n')

        assert find_config_path().resolve() == (tmp_path / "agentwatch.toml").resolve()
        assert load_config().sharing.profile == "full-content"


class TestEnvOverrides:
    """Tests for environment variable overrides."""

    def test_env_fills_unset_values(self, monkeypatch):
        monkeypatch.setenv("AGENTWATCH_PROFILE", "metadata-only")
        monkeypatch.setenv("AGENTWATCH_CONTRIBUTOR_ID", "env-user")
        monkeypatch.setenv("AGENTWATCH_LOG_LEVEL", "debug")

        config = load_config()

        assert config.sharing.profile == "metadata-only"
        assert config.sharing.contributor.contributor_id == "env-user"
        assert config.logging.level == "DEBUG"

    def test_file_values_win_over_env(self, monkeypatch, config_file):
        monkeypatch.setenv("AGENTWATCH_PROFILE", "full-content")

        config = load_config(config_file)

        assert config.sharing.profile == "metadata-only"

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("AGENTWATCH_LOG_LEVEL", "loud")

        with pytest.raises(ConfigError):
            load_config()
