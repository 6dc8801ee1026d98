"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agentwatch.config.models import AgentwatchConfig, ConfigError
from agentwatch.config.paths import get_config_path


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("agentwatch.toml"),  # Current directory
        get_config_path(),  # ~/.agentwatch/config.toml (or AGENTWATCH_HOME)
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Fill settings from environment variables where not set in config."""
    mappings = [
        (("logging",), "level", "AGENTWATCH_LOG_LEVEL"),
        (("sharing",), "profile", "AGENTWATCH_PROFILE"),
        (("sharing", "contributor"), "contributor_id", "AGENTWATCH_CONTRIBUTOR_ID"),
    ]
    for keys, key, env_var in mappings:
        value = os.environ.get(env_var)
        if not value:
            continue
        section = config
        for name in keys:
            section = section.setdefault(name, {})
        if section.get(key) is None:
            section[key] = value.upper() if key == "level" else value
    return config


def find_config_path(path: Path | None = None) -> Path | None:
    """Resolve the config file to load.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
    """
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return config_path
    for default_path in _get_default_config_paths():
        expanded = default_path.expanduser()
        if expanded.exists():
            return expanded
    return None


def load_config(path: Path | None = None) -> AgentwatchConfig:
    """Load configuration from a TOML file.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to defaults when none exists.

    Returns:
        Validated AgentwatchConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the config file is not valid TOML or fails validation.
    """
    config_path = find_config_path(path)

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    raw_config = _apply_env_overrides(raw_config)

    try:
        return AgentwatchConfig.model_validate(raw_config)
    except ValidationError as e:
        source = config_path or "environment"
        raise ConfigError(f"Invalid configuration in {source}:\n{e}") from e
