"""Record types for the four observation sources.

Hook sessions, tool usages, transcripts, process snapshots and managed runs
are written by separate collectors. The hook store and the dashboard write
camelCase JSON while the Python side uses snake_case, so every record accepts
both spellings. Timestamps are epoch milliseconds throughout.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

HookSource = Literal["startup", "resume", "clear", "compact"]
ManagedStatus = Literal["running", "completed", "failed"]


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Commit(_Record):
    hash: str
    message: str = ""
    timestamp: int | None = None


class HookSession(_Record):
    """A session observed through agent lifecycle hooks.

    Created on session start, appended to by tool-use and stop events, and
    closed by setting end_time.
    """

    session_id: str = Field(min_length=1)
    transcript_path: str | None = None
    cwd: str = Field(min_length=1)
    start_time: int
    end_time: int | None = None
    tool_count: int = Field(default=0, ge=0)
    tools_used: dict[str, int] = Field(default_factory=dict)
    commits: list[Commit] = Field(default_factory=list)
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    estimated_cost_usd: float = 0.0
    source: HookSource = "startup"
    permission_mode: str | None = None
    last_activity: int | None = None
    pid: int | None = None

    @field_validator("tools_used", mode="before")
    @classmethod
    def _tools_from_names(cls, value: Any) -> Any:
        # Older hook stores wrote a plain list of tool names.
        if isinstance(value, list | tuple | set | frozenset):
            counts: dict[str, int] = {}
            for name in value:
                counts[str(name)] = counts.get(str(name), 0) + 1
            return counts
        return value

    @field_validator("commits", mode="before")
    @classmethod
    def _commits_from_hashes(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"hash": c} if isinstance(c, str) else c for c in value]
        return value

    @property
    def active(self) -> bool:
        return self.end_time is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "transcript_path": self.transcript_path,
            "cwd": self.cwd,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "permission_mode": self.permission_mode,
            "source": self.source,
            "tool_count": self.tool_count,
            "last_activity": self.last_activity,
            "tools_used": dict(self.tools_used),
            "active": self.active,
            "commit_count": len(self.commits),
            "commits": [c.model_dump() for c in self.commits],
            "total_input_tokens": self.total_input_tokens,
            "total_output_tokens": self.total_output_tokens,
            "estimated_cost_usd": self.estimated_cost_usd,
            "pid": self.pid,
        }


class ToolUsage(_Record):
    """One tool invocation inside a hook session."""

    tool_use_id: str
    tool_name: str
    tool_input: dict[str, Any] = Field(default_factory=dict)
    timestamp: int
    session_id: str | None = None
    cwd: str | None = None
    success: bool | None = None
    duration_ms: int | None = None
    tool_response: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool_use_id": self.tool_use_id,
            "tool_name": self.tool_name,
            "tool_input": self.tool_input,
            "timestamp": self.timestamp,
            "session_id": self.session_id,
            "cwd": self.cwd,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "tool_response": self.tool_response,
            "error": self.error,
        }


class LocalTranscript(_Record):
    """Metadata for a conversation log discovered on disk."""

    id: str = Field(min_length=1)
    agent: str = "claude"
    path: str
    name: str | None = None
    project_dir: str | None = None
    modified_at: int | None = None
    size_bytes: int = 0
    message_count: int = 0
    start_time: int | None = None
    end_time: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "agent": self.agent,
            "path": self.path,
            "name": self.name,
            "project_dir": self.project_dir,
            "modified_at": self.modified_at,
            "size_bytes": self.size_bytes,
            "message_count": self.message_count,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


class ProcessSnapshot(_Record):
    """Point-in-time observation of a running agent process."""

    timestamp: int
    pid: int
    label: str = ""
    cmdline: str = ""
    exe: str = ""
    cpu_pct: float = 0.0
    rss_kb: int | None = None
    threads: int | None = None
    cwd: str | None = None
    repo_path: str | None = None
    state: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "pid": self.pid,
            "label": self.label,
            "cpu_pct": self.cpu_pct,
            "rss_kb": self.rss_kb,
            "threads": self.threads,
            "state": self.state,
        }


class ManagedSession(_Record):
    """A run launched by agentwatch itself."""

    id: str
    prompt: str = ""
    agent: str = "claude"
    pid: int | None = None
    cwd: str
    started_at: int
    ended_at: int | None = None
    exit_code: int | None = None
    status: ManagedStatus = "running"

    def to_dict(self, now_ms: int | None = None) -> dict[str, Any]:
        end = self.ended_at if self.ended_at is not None else now_ms
        return {
            "id": self.id,
            "prompt": self.prompt,
            "agent": self.agent,
            "pid": self.pid,
            "cwd": self.cwd,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "exit_code": self.exit_code,
            "status": self.status,
            "duration_ms": end - self.started_at if end is not None else None,
        }


class Project(_Record):
    """A named group of directories used to label conversations."""

    id: str
    name: str
    paths: list[str] = Field(default_factory=list)
    description: str | None = None


RecordT = TypeVar("RecordT", bound=_Record)


def coerce_records(
    model: type[RecordT], items: Iterable[RecordT | Mapping[str, Any]]
) -> tuple[list[RecordT], int]:
    """Validate raw records, returning the good ones and a dropped count.

    Instances of ``model`` pass through untouched. Anything that fails
    validation is skipped and only counted.
    """
    records: list[RecordT] = []
    dropped = 0
    for item in items:
        if isinstance(item, model):
            records.append(item)
            continue
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            dropped += 1
            logger.debug(
                "record_dropped",
                extra={"model": model.__name__, "error.message": str(e)},
            )
    return records, dropped
