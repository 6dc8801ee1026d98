"""Types produced by session correlation."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field

from agentwatch.sources.types import (
    HookSession,
    LocalTranscript,
    ManagedSession,
    ProcessSnapshot,
    Project,
    ToolUsage,
)

MatchType = Literal["exact", "linked", "partial", "unmatched"]
Confidence = Literal["high", "low"]


class CorrelationConfig(BaseModel):
    """Tunables for hook/transcript matching."""

    # Maximum start-time distance for two fragments to count as simultaneous
    time_window_ms: int = Field(default=5000, ge=0)
    # Absolute slack allowed between the hook tool count and the estimate
    tool_count_tolerance: int = Field(default=2, ge=0)
    # Relative slack, as a share of the estimate; the larger slack wins
    tool_count_tolerance_ratio: float = Field(default=0.2, ge=0.0)
    # Transcript messages per tool call (tool_use + tool_result)
    messages_per_tool: float = Field(default=2.0, gt=0.0)


@dataclass(frozen=True)
class MatchDetails:
    path_match: bool = False
    time_match: bool = False
    cwd_match: bool = False
    tool_count_match: bool = False
    score: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "path_match": self.path_match,
            "time_match": self.time_match,
            "cwd_match": self.cwd_match,
            "tool_count_match": self.tool_count_match,
            "score": self.score,
        }


@dataclass
class Conversation:
    """One real-world coding session assembled from source fragments.

    Conversations are a view: they are rebuilt from the raw stores on every
    query and never persisted.
    """

    correlation_id: str
    match_type: MatchType
    match_details: MatchDetails
    start_time: int | None
    cwd: str | None
    agent: str
    hook_session: HookSession | None = None
    transcript: LocalTranscript | None = None
    tool_usages: list[ToolUsage] = field(default_factory=list)
    process_snapshots: list[ProcessSnapshot] = field(default_factory=list)
    managed_session: ManagedSession | None = None
    project: Project | None = None
    confidence: Confidence | None = None

    @property
    def end_time(self) -> int | None:
        if self.hook_session is not None:
            return self.hook_session.end_time
        if self.transcript is not None:
            return self.transcript.end_time
        if self.managed_session is not None:
            return self.managed_session.ended_at
        return None

    @property
    def pid(self) -> int | None:
        if self.hook_session is not None and self.hook_session.pid is not None:
            return self.hook_session.pid
        if self.managed_session is not None:
            return self.managed_session.pid
        return None

    def to_dict(self, now_ms: int | None = None) -> dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "match_type": self.match_type,
            "confidence": self.confidence,
            "match_details": self.match_details.to_dict(),
            "start_time": self.start_time,
            "cwd": self.cwd,
            "agent": self.agent,
            "hook_session": self.hook_session.to_dict() if self.hook_session else None,
            "transcript": self.transcript.to_dict() if self.transcript else None,
            "process_snapshots": [s.to_dict() for s in self.process_snapshots],
            "managed_session": (
                self.managed_session.to_dict(now_ms) if self.managed_session else None
            ),
            "project": (
                {"id": self.project.id, "name": self.project.name}
                if self.project
                else None
            ),
            "tool_count": len(self.tool_usages),
            "snapshot_count": len(self.process_snapshots),
        }


@dataclass
class CorrelationResult:
    conversations: list[Conversation]
    dropped_hook_sessions: int = 0
    dropped_transcripts: int = 0
    dropped_tool_usages: int = 0

    @property
    def dropped(self) -> int:
        """Hook sessions and transcripts that could not take part in matching."""
        return self.dropped_hook_sessions + self.dropped_transcripts


@dataclass
class CorrelationStats:
    total: int = 0
    exact: int = 0
    linked: int = 0
    low_confidence: int = 0
    partial: int = 0
    unmatched: int = 0
    hook_only: int = 0
    transcript_only: int = 0
    managed_only: int = 0
    with_managed_session: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "exact": self.exact,
            "linked": self.linked,
            "low_confidence": self.low_confidence,
            "partial": self.partial,
            "unmatched": self.unmatched,
            "hook_only": self.hook_only,
            "transcript_only": self.transcript_only,
            "managed_only": self.managed_only,
            "with_managed_session": self.with_managed_session,
        }


def fallback_correlation_id(cwd: str | None, start_time: int | None) -> str:
    """Stable id for a conversation with neither a hook session nor a transcript."""
    digest = hashlib.sha256(f"{cwd or ''}\x00{start_time or 0}".encode()).hexdigest()
    return f"conv-{digest[:16]}"
