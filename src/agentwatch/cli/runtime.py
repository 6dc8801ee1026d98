"""Shared loading helpers for CLI commands."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

import click
import typer
from rich.markup import escape

from agentwatch.cli.console import error
from agentwatch.config import AgentwatchConfig, ConfigError, load_config
from agentwatch.config.paths import (
    get_hooks_path,
    get_managed_sessions_path,
    get_process_logs_path,
    get_transcript_index_path,
)
from agentwatch.correlation import (
    Conversation,
    CorrelationStats,
    Correlator,
    attach_managed_sessions,
    attach_process_snapshots,
    attach_projects,
    get_correlation_stats,
)
from agentwatch.redaction import InvalidPatternError
from agentwatch.sources import (
    load_hook_sessions,
    load_managed_sessions,
    load_process_snapshots,
    load_tool_usages,
    load_transcripts,
)


@dataclass(slots=True)
class CorrelationRun:
    conversations: list[Conversation]
    stats: CorrelationStats
    now_ms: int


def now_ms() -> int:
    return int(time.time() * 1000)


def since_ms(hours: float | None, now: int) -> int | None:
    if hours is None:
        return None
    return now - int(hours * 3600 * 1000)


def load_cli_config(path: Path | None) -> AgentwatchConfig:
    """Load config or exit with a readable error.

    The [logging] section is applied here; command-line flags win over it.
    """
    try:
        config = load_config(path)
    except (FileNotFoundError, ConfigError) as e:
        error(escape(str(e)))
        raise typer.Exit(1) from None
    _apply_logging(config)
    return config


def _apply_logging(config: AgentwatchConfig) -> None:
    from agentwatch.logging import configure_logging, configure_redaction

    ctx = click.get_current_context(silent=True)
    flags = (ctx.find_root().obj if ctx else None) or {}
    try:
        configure_redaction(extra_patterns=config.logging.redact_patterns)
    except InvalidPatternError as e:
        error(escape(str(e)))
        raise typer.Exit(1) from None
    configure_logging(
        level=flags.get("log_level") or config.logging.level,
        use_rich=True,
        log_to_file=flags.get("log_file") or config.logging.log_to_file,
        retention_days=config.logging.retention_days,
    )


def run_correlation(
    config: AgentwatchConfig, hours: float | None = None
) -> CorrelationRun:
    """Read every source from the data directory and correlate it."""
    now = now_ms()
    since = since_ms(hours, now)

    result = Correlator(config.correlation).correlate(
        load_hook_sessions(get_hooks_path(), since),
        load_transcripts(get_transcript_index_path(), since),
        load_tool_usages(get_hooks_path(), since),
    )
    conversations = attach_managed_sessions(
        result.conversations, load_managed_sessions(get_managed_sessions_path(), since), now
    )
    conversations = attach_process_snapshots(
        conversations, load_process_snapshots(get_process_logs_path(), since), now
    )
    conversations = attach_projects(conversations, config.projects)
    return CorrelationRun(
        conversations=conversations,
        stats=get_correlation_stats(conversations, dropped=result.dropped),
        now_ms=now,
    )
