"""Configuration module."""

from agentwatch.config.loader import find_config_path, load_config
from agentwatch.config.models import (
    AgentwatchConfig,
    ConfigError,
    LoggingConfig,
    SharingConfig,
)
from agentwatch.config.paths import (
    get_agentwatch_home,
    get_config_path,
    get_logs_path,
    get_profiles_path,
)

__all__ = [
    "AgentwatchConfig",
    "ConfigError",
    "LoggingConfig",
    "SharingConfig",
    "find_config_path",
    "get_agentwatch_home",
    "get_config_path",
    "get_logs_path",
    "get_profiles_path",
    "load_config",
]
