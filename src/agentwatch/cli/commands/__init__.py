"""CLI command modules."""

from agentwatch.cli.commands import (
    config,
    correlate,
    profiles,
    redact,
    share,
)

__all__ = [
    "config",
    "correlate",
    "profiles",
    "redact",
    "share",
]
