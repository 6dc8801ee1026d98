"""Heuristic quality score for a session, 0 to 100."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

COMMITS_WEIGHT = 30
LOW_FAILURE_WEIGHT = 25
STEADY_PACING_WEIGHT = 15
TOOL_ACTIVITY_WEIGHT = 15
COMPLETED_WEIGHT = 15

MAX_FAILURE_RATE = 0.2
MAX_IDLE_GAP_MS = 5 * 60 * 1000
MIN_TOOL_CALLS = 3


@dataclass(frozen=True)
class QualitySignals:
    has_commits: bool = False
    low_failure_rate: bool = False
    steady_pacing: bool = False
    tool_activity: bool = False
    completed: bool = False

    @property
    def score(self) -> int:
        return (
            COMMITS_WEIGHT * self.has_commits
            + LOW_FAILURE_WEIGHT * self.low_failure_rate
            + STEADY_PACING_WEIGHT * self.steady_pacing
            + TOOL_ACTIVITY_WEIGHT * self.tool_activity
            + COMPLETED_WEIGHT * self.completed
        )


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _has_commits(session: dict[str, Any], usages: list[dict[str, Any]]) -> bool:
    if _as_list(session.get("commits")) or session.get("commit_count"):
        return True
    for usage in usages:
        command = _as_dict(usage.get("tool_input")).get("command")
        if isinstance(command, str) and "git commit" in command:
            return True
    return False


def _failure_rate_low(usages: list[dict[str, Any]]) -> bool:
    outcomes = [u.get("success") for u in usages if u.get("success") is not None]
    if not outcomes:
        return False
    failures = sum(1 for ok in outcomes if not ok)
    return failures / len(outcomes) <= MAX_FAILURE_RATE


def _pacing_steady(usages: list[dict[str, Any]]) -> bool:
    times = sorted(
        u["timestamp"] for u in usages if isinstance(u.get("timestamp"), int | float)
    )
    if len(times) < 2:
        return False
    return all(b - a <= MAX_IDLE_GAP_MS for a, b in zip(times, times[1:]))


def quality_signals(data: dict[str, Any]) -> QualitySignals:
    """Read the scoring signals from raw session data.

    Missing or oddly typed fields count as an absent signal.
    """
    session = _as_dict(data.get("session"))
    usages = [u for u in _as_list(data.get("tool_usages")) if isinstance(u, dict)]
    tool_count = session.get("tool_count")
    tool_calls = max(len(usages), tool_count if isinstance(tool_count, int) else 0)
    return QualitySignals(
        has_commits=_has_commits(session, usages),
        low_failure_rate=_failure_rate_low(usages),
        steady_pacing=_pacing_steady(usages),
        tool_activity=tool_calls >= MIN_TOOL_CALLS,
        completed=session.get("end_time") is not None,
    )


def score_session(data: dict[str, Any]) -> int:
    return quality_signals(data).score
