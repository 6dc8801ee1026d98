"""Centralized path management for agentwatch.

All state (config, collected records, profiles, logs) lives under a single
base directory. The base directory can be overridden with the
AGENTWATCH_HOME environment variable.

Default layout:
- ~/.agentwatch/config.toml
- ~/.agentwatch/hooks/       sessions_*.jsonl, tool_usages_*.jsonl
- ~/.agentwatch/sessions/    managed runs, one JSON file each
- ~/.agentwatch/processes/   snapshots_*.jsonl
- ~/.agentwatch/transcripts/ index.jsonl
- ~/.agentwatch/contrib/     profiles.json
- ~/.agentwatch/logs/        YYYY-MM-DD.jsonl
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "AGENTWATCH_HOME"


@lru_cache(maxsize=1)
def get_agentwatch_home() -> Path:
    """Get the base directory for all agentwatch data.

    Resolution order:
    1. AGENTWATCH_HOME environment variable (if set)
    2. Platform default (~/.agentwatch)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".agentwatch"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_agentwatch_home() / "config.toml"


def get_hooks_path() -> Path:
    """Get the hook data directory (sessions and tool usages)."""
    return get_agentwatch_home() / "hooks"


def get_managed_sessions_path() -> Path:
    """Get the directory holding managed run records."""
    return get_agentwatch_home() / "sessions"


def get_process_logs_path() -> Path:
    """Get the process snapshot log directory."""
    return get_agentwatch_home() / "processes"


def get_transcript_index_path() -> Path:
    """Get the transcript index file written by transcript discovery."""
    return get_agentwatch_home() / "transcripts" / "index.jsonl"


def get_profiles_path() -> Path:
    """Get the user redaction profile store."""
    return get_agentwatch_home() / "contrib" / "profiles.json"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_agentwatch_home() / "logs"
