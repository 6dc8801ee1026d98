"""Observation source records and the readers for their on-disk stores."""

from agentwatch.sources.reader import (
    iter_jsonl,
    load_hook_sessions,
    load_managed_sessions,
    load_process_snapshots,
    load_tool_usages,
    load_transcript_messages,
    load_transcripts,
)
from agentwatch.sources.types import (
    Commit,
    HookSession,
    LocalTranscript,
    ManagedSession,
    ProcessSnapshot,
    Project,
    ToolUsage,
    coerce_records,
)

__all__ = [
    "Commit",
    "HookSession",
    "LocalTranscript",
    "ManagedSession",
    "ProcessSnapshot",
    "Project",
    "ToolUsage",
    "coerce_records",
    "iter_jsonl",
    "load_hook_sessions",
    "load_managed_sessions",
    "load_process_snapshots",
    "load_tool_usages",
    "load_transcript_messages",
    "load_transcripts",
]
