"""Match signals and scoring for hook session / transcript pairs.

Each signal contributes a fixed weight. A path match outweighs every other
signal combined, so a pair that shares a transcript path always outranks a
pair that does not.
"""

from __future__ import annotations

import math

from agentwatch.correlation.types import (
    Confidence,
    CorrelationConfig,
    MatchDetails,
    MatchType,
)
from agentwatch.sources.types import HookSession, LocalTranscript

PATH_WEIGHT = 100
CWD_WEIGHT = 30
TIME_WEIGHT = 20
TOOL_COUNT_WEIGHT = 10


def is_path_prefix(prefix: str, path: str) -> bool:
    """Return True if ``prefix`` equals ``path`` or is one of its ancestors."""
    if prefix == path:
        return True
    trimmed = prefix.rstrip("/\\")
    if not trimmed:
        # Filesystem root
        return path.startswith(("/", "\\"))
    return path.startswith((trimmed + "/", trimmed + "\\"))


def cwd_compatible(hook: HookSession, transcript: LocalTranscript) -> bool:
    """Whether a pair is allowed to be considered at all."""
    if transcript.project_dir is None:
        return False
    return is_path_prefix(transcript.project_dir, hook.cwd)


def estimate_tool_count(transcript: LocalTranscript, config: CorrelationConfig) -> int:
    return round(transcript.message_count / config.messages_per_tool)


def tool_counts_agree(
    hook_tool_count: int, transcript: LocalTranscript, config: CorrelationConfig
) -> bool:
    estimate = estimate_tool_count(transcript, config)
    tolerance = max(
        config.tool_count_tolerance,
        math.ceil(estimate * config.tool_count_tolerance_ratio),
    )
    return abs(hook_tool_count - estimate) <= tolerance


def score_pair(
    hook: HookSession,
    transcript: LocalTranscript,
    hook_tool_count: int,
    config: CorrelationConfig,
) -> MatchDetails:
    path_match = (
        hook.transcript_path is not None and hook.transcript_path == transcript.path
    )
    time_match = (
        transcript.start_time is not None
        and abs(hook.start_time - transcript.start_time) <= config.time_window_ms
    )
    cwd_match = hook.cwd == transcript.project_dir
    tool_count_match = tool_counts_agree(hook_tool_count, transcript, config)

    score = (
        PATH_WEIGHT * path_match
        + CWD_WEIGHT * cwd_match
        + TIME_WEIGHT * time_match
        + TOOL_COUNT_WEIGHT * tool_count_match
    )
    return MatchDetails(
        path_match=path_match,
        time_match=time_match,
        cwd_match=cwd_match,
        tool_count_match=tool_count_match,
        score=score,
    )


def classify(details: MatchDetails) -> tuple[MatchType, Confidence] | None:
    """Decide whether a scored pair may be linked, and how confidently.

    Returns None for pairs that must stay apart. A shared directory or a
    similar tool count alone is not evidence of the same session; a pair
    needs either the transcript path or a start-time match.
    """
    if details.path_match:
        return "exact", "high"
    if details.time_match and details.cwd_match:
        return "linked", "high"
    if details.time_match:
        return "linked", "low"
    return None
