"""Correlation of hook sessions, transcripts, process snapshots and managed runs.

Sources share no primary key, so fragments are matched on weak signals
(transcript path, start time, working directory, tool counts) and every
resulting Conversation records how confident the match is.
"""

from agentwatch.correlation.attach import (
    attach_managed_sessions,
    attach_process_snapshots,
    attach_projects,
)
from agentwatch.correlation.correlator import (
    Correlator,
    correlate,
    get_correlation_stats,
)
from agentwatch.correlation.types import (
    Conversation,
    CorrelationConfig,
    CorrelationResult,
    CorrelationStats,
    MatchDetails,
    MatchType,
)

__all__ = [
    "Conversation",
    "CorrelationConfig",
    "CorrelationResult",
    "CorrelationStats",
    "Correlator",
    "MatchDetails",
    "MatchType",
    "attach_managed_sessions",
    "attach_process_snapshots",
    "attach_projects",
    "correlate",
    "get_correlation_stats",
]
