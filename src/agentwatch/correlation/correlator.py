"""Correlate hook sessions with on-disk transcripts.

Hook sessions and transcripts describe the same real sessions but share no
key. Every cwd-compatible pair is scored, then pairs are claimed greedily,
highest score first. Greedy claiming approximates a maximum-weight bipartite
matching; it can only mis-pair sessions that start within the same time
window in the same directory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from agentwatch.correlation.scoring import classify, cwd_compatible, score_pair
from agentwatch.correlation.types import (
    Confidence,
    Conversation,
    CorrelationConfig,
    CorrelationResult,
    CorrelationStats,
    MatchDetails,
    MatchType,
)
from agentwatch.sources.types import (
    HookSession,
    LocalTranscript,
    ToolUsage,
    coerce_records,
)

logger = logging.getLogger(__name__)

HookInput = HookSession | Mapping[str, Any]
TranscriptInput = LocalTranscript | Mapping[str, Any]
ToolUsageInput = ToolUsage | Mapping[str, Any]


@dataclass(frozen=True)
class _Candidate:
    hook: HookSession
    transcript: LocalTranscript
    details: MatchDetails
    match_type: MatchType
    confidence: Confidence

    @property
    def start_time(self) -> int:
        transcript_start = self.transcript.start_time
        if transcript_start is None:
            return self.hook.start_time
        return min(self.hook.start_time, transcript_start)

    def sort_key(self) -> tuple[int, int, str, str]:
        return (
            -self.details.score,
            self.start_time,
            self.hook.session_id,
            self.transcript.id,
        )


def conversation_sort_key(conv: Conversation) -> tuple[int, str]:
    """Newest first, then by id."""
    return (-(conv.start_time or 0), conv.correlation_id)


class Correlator:
    """Builds Conversations from hook sessions, transcripts and tool usages."""

    def __init__(self, config: CorrelationConfig | None = None) -> None:
        self.config = config or CorrelationConfig()

    def correlate(
        self,
        hook_sessions: Iterable[HookInput],
        transcripts: Iterable[TranscriptInput],
        tool_usages_by_session_id: Mapping[str, Iterable[ToolUsageInput]]
        | None = None,
    ) -> CorrelationResult:
        hooks, dropped_hooks = _unique_hooks(hook_sessions)
        usable_transcripts, dropped_transcripts = _usable_transcripts(transcripts)
        usages, dropped_usages = _tool_usages(
            tool_usages_by_session_id or {}, {h.session_id for h in hooks}
        )

        candidates = self._candidates(hooks, usable_transcripts, usages)
        candidates.sort(key=_Candidate.sort_key)

        claimed_hooks: set[str] = set()
        claimed_transcripts: set[str] = set()
        conversations: list[Conversation] = []

        for candidate in candidates:
            hook_id = candidate.hook.session_id
            transcript_id = candidate.transcript.id
            if hook_id in claimed_hooks or transcript_id in claimed_transcripts:
                continue
            claimed_hooks.add(hook_id)
            claimed_transcripts.add(transcript_id)
            conversations.append(_paired(candidate, usages.get(hook_id, [])))

        for hook in hooks:
            if hook.session_id not in claimed_hooks:
                conversations.append(
                    _hook_only(hook, usages.get(hook.session_id, []))
                )
        for transcript in usable_transcripts:
            if transcript.id not in claimed_transcripts:
                conversations.append(_transcript_only(transcript))

        conversations.sort(key=conversation_sort_key)

        result = CorrelationResult(
            conversations=conversations,
            dropped_hook_sessions=dropped_hooks,
            dropped_transcripts=dropped_transcripts,
            dropped_tool_usages=dropped_usages,
        )
        logger.info(
            "Correlated %d hook sessions and %d transcripts into %d conversations",
            len(hooks),
            len(usable_transcripts),
            len(conversations),
            extra={
                "candidates": len(candidates),
                "paired": len(claimed_hooks),
                "dropped": result.dropped,
            },
        )
        return result

    def _candidates(
        self,
        hooks: list[HookSession],
        transcripts: list[LocalTranscript],
        usages: dict[str, list[ToolUsage]],
    ) -> list[_Candidate]:
        candidates: list[_Candidate] = []
        for hook in hooks:
            hook_usages = usages.get(hook.session_id)
            hook_tool_count = len(hook_usages) if hook_usages else hook.tool_count
            for transcript in transcripts:
                if not cwd_compatible(hook, transcript):
                    continue
                details = score_pair(hook, transcript, hook_tool_count, self.config)
                verdict = classify(details)
                if verdict is None:
                    continue
                match_type, confidence = verdict
                candidates.append(
                    _Candidate(hook, transcript, details, match_type, confidence)
                )
        return candidates


def correlate(
    hook_sessions: Iterable[HookInput],
    transcripts: Iterable[TranscriptInput],
    tool_usages_by_session_id: Mapping[str, Iterable[ToolUsageInput]] | None = None,
    config: CorrelationConfig | None = None,
) -> list[Conversation]:
    """Correlate hook sessions with transcripts into Conversations."""
    return (
        Correlator(config)
        .correlate(hook_sessions, transcripts, tool_usages_by_session_id)
        .conversations
    )


def get_correlation_stats(
    result: CorrelationResult | Iterable[Conversation], dropped: int = 0
) -> CorrelationStats:
    """Summarize a correlation run.

    Takes a ``CorrelationResult`` or a conversation list (for example after
    the attach passes) plus the number of dropped input records. ``unmatched``
    counts those dropped records and every managed-only conversation.
    """
    if isinstance(result, CorrelationResult):
        conversations: Iterable[Conversation] = result.conversations
        dropped += result.dropped
    else:
        conversations = result

    stats = CorrelationStats(unmatched=dropped)
    for conv in conversations:
        stats.total += 1
        if conv.match_type == "exact":
            stats.exact += 1
        elif conv.match_type == "linked":
            if conv.confidence == "low":
                stats.low_confidence += 1
            else:
                stats.linked += 1
        elif conv.match_type == "partial":
            stats.partial += 1
            if conv.hook_session is not None:
                stats.hook_only += 1
            else:
                stats.transcript_only += 1
        else:
            stats.managed_only += 1
            stats.unmatched += 1

        if conv.managed_session is not None and conv.match_type != "unmatched":
            stats.with_managed_session += 1
    return stats


def _unique_hooks(items: Iterable[HookInput]) -> tuple[list[HookSession], int]:
    hooks, dropped = coerce_records(HookSession, items)
    unique: dict[str, HookSession] = {}
    for hook in hooks:
        if hook.session_id in unique:
            dropped += 1
            continue
        unique[hook.session_id] = hook
    return list(unique.values()), dropped


def _usable_transcripts(
    items: Iterable[TranscriptInput],
) -> tuple[list[LocalTranscript], int]:
    transcripts, dropped = coerce_records(LocalTranscript, items)
    usable: dict[str, LocalTranscript] = {}
    for transcript in transcripts:
        # Without a directory or a start time a transcript cannot be matched
        if (
            not transcript.project_dir
            or transcript.start_time is None
            or transcript.id in usable
        ):
            dropped += 1
            continue
        usable[transcript.id] = transcript
    return list(usable.values()), dropped


def _tool_usages(
    by_session: Mapping[str, Iterable[ToolUsageInput]], session_ids: set[str]
) -> tuple[dict[str, list[ToolUsage]], int]:
    usages: dict[str, list[ToolUsage]] = {}
    dropped = 0
    for session_id, items in by_session.items():
        if session_id not in session_ids:
            continue
        records, bad = coerce_records(ToolUsage, items)
        dropped += bad
        # Pre- and post-use events share an id; the later record is final
        latest: dict[str, ToolUsage] = {}
        for usage in records:
            latest[usage.tool_use_id] = usage
        usages[session_id] = sorted(
            latest.values(), key=lambda u: (u.timestamp, u.tool_use_id)
        )
    return usages, dropped


def _paired(candidate: _Candidate, usages: list[ToolUsage]) -> Conversation:
    hook = candidate.hook
    return Conversation(
        correlation_id=hook.session_id,
        match_type=candidate.match_type,
        confidence=candidate.confidence,
        match_details=candidate.details,
        start_time=hook.start_time,
        cwd=hook.cwd,
        agent=candidate.transcript.agent,
        hook_session=hook,
        transcript=candidate.transcript,
        tool_usages=list(usages),
    )


def _hook_only(hook: HookSession, usages: list[ToolUsage]) -> Conversation:
    return Conversation(
        correlation_id=hook.session_id,
        match_type="partial",
        match_details=MatchDetails(),
        start_time=hook.start_time,
        cwd=hook.cwd,
        agent="claude",
        hook_session=hook,
        tool_usages=list(usages),
    )


def _transcript_only(transcript: LocalTranscript) -> Conversation:
    return Conversation(
        correlation_id=transcript.id,
        match_type="partial",
        match_details=MatchDetails(),
        start_time=transcript.start_time,
        cwd=transcript.project_dir,
        agent=transcript.agent,
        transcript=transcript,
    )
