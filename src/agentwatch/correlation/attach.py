"""Enrichment passes that run after hook/transcript pairing.

Each pass is pure: it takes a conversation list plus one more source and
returns a new list, leaving its inputs untouched.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from agentwatch.correlation.correlator import conversation_sort_key
from agentwatch.correlation.scoring import is_path_prefix
from agentwatch.correlation.types import (
    Conversation,
    MatchDetails,
    fallback_correlation_id,
)
from agentwatch.sources.types import (
    ManagedSession,
    ProcessSnapshot,
    Project,
    coerce_records,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _window(conv: Conversation, now_ms: int) -> tuple[int, int] | None:
    if conv.start_time is None:
        return None
    end = conv.end_time
    return conv.start_time, end if end is not None else now_ms


def _in_window(snapshot: ProcessSnapshot, conv: Conversation, now_ms: int) -> bool:
    window = _window(conv, now_ms)
    return window is not None and window[0] <= snapshot.timestamp <= window[1]


def _claimant(
    snapshot: ProcessSnapshot, conversations: list[Conversation], now_ms: int
) -> int | None:
    """Index of the conversation a snapshot belongs to.

    A conversation carrying the snapshot's pid wins anywhere in the list;
    pid-less conversations in the same cwd are only the fallback.
    """
    fallback: int | None = None
    for index, conv in enumerate(conversations):
        if not _in_window(snapshot, conv, now_ms):
            continue
        pid = conv.pid
        if pid is not None:
            if pid == snapshot.pid:
                return index
        elif fallback is None and snapshot.cwd is not None and snapshot.cwd == conv.cwd:
            fallback = index
    return fallback


def attach_process_snapshots(
    conversations: list[Conversation],
    snapshots: Iterable[ProcessSnapshot | Mapping[str, Any]],
    now_ms: int | None = None,
) -> list[Conversation]:
    """Attach each process snapshot to at most one conversation.

    A snapshot must fall inside the conversation's time window. It goes to
    the conversation with its pid, or failing that to the first conversation
    without a known pid in the same cwd.
    """
    now = now_ms if now_ms is not None else _now_ms()
    records, dropped = coerce_records(ProcessSnapshot, snapshots)
    records.sort(key=lambda s: (s.timestamp, s.pid))

    assigned: dict[int, list[ProcessSnapshot]] = {}
    unassigned = 0
    for snapshot in records:
        index = _claimant(snapshot, conversations, now)
        if index is None:
            unassigned += 1
        else:
            assigned.setdefault(index, []).append(snapshot)

    logger.debug(
        "Attached %d process snapshots",
        len(records) - unassigned,
        extra={"unassigned": unassigned, "dropped": dropped},
    )

    result: list[Conversation] = []
    for index, conv in enumerate(conversations):
        extra = assigned.get(index)
        if not extra:
            result.append(conv)
            continue
        merged = sorted(
            [*conv.process_snapshots, *extra], key=lambda s: (s.timestamp, s.pid)
        )
        result.append(replace(conv, process_snapshots=merged))
    return result


def _overlaps(a: tuple[int, int], b: tuple[int, int]) -> bool:
    return a[0] <= b[1] and b[0] <= a[1]


def attach_managed_sessions(
    conversations: list[Conversation],
    managed_sessions: Iterable[ManagedSession | Mapping[str, Any]],
    now_ms: int | None = None,
) -> list[Conversation]:
    """Pair managed runs with conversations in the same cwd and time window.

    A conversation takes at most one managed run and a run joins at most one
    conversation; the conversation whose start is closest to the run's start
    wins. Runs left over become managed-only conversations.
    """
    now = now_ms if now_ms is not None else _now_ms()
    records, dropped = coerce_records(ManagedSession, managed_sessions)
    records.sort(key=lambda m: (m.started_at, m.id))

    taken = {
        index
        for index, conv in enumerate(conversations)
        if conv.managed_session is not None
    }
    assigned: dict[int, ManagedSession] = {}
    leftovers: list[ManagedSession] = []

    for managed in records:
        run_end = managed.ended_at if managed.ended_at is not None else now
        run_window = (managed.started_at, run_end)
        best: tuple[int, str, int] | None = None
        for index, conv in enumerate(conversations):
            if index in taken or index in assigned or conv.cwd != managed.cwd:
                continue
            window = _window(conv, now)
            if window is None or not _overlaps(window, run_window):
                continue
            rank = (
                abs(window[0] - managed.started_at),
                conv.correlation_id,
                index,
            )
            if best is None or rank < best:
                best = rank
        if best is None:
            leftovers.append(managed)
        else:
            assigned[best[2]] = managed

    result = [
        replace(conv, managed_session=assigned[index]) if index in assigned else conv
        for index, conv in enumerate(conversations)
    ]
    for managed in leftovers:
        result.append(
            Conversation(
                correlation_id=fallback_correlation_id(managed.cwd, managed.started_at),
                match_type="unmatched",
                match_details=MatchDetails(),
                start_time=managed.started_at,
                cwd=managed.cwd,
                agent=managed.agent,
                managed_session=managed,
            )
        )

    logger.debug(
        "Attached %d managed sessions",
        len(assigned),
        extra={"managed_only": len(leftovers), "dropped": dropped},
    )
    return sorted(result, key=conversation_sort_key) if leftovers else result


def attach_projects(
    conversations: list[Conversation],
    projects: Iterable[Project | Mapping[str, Any]],
) -> list[Conversation]:
    """Label each conversation with the first project containing its cwd.

    Project order is significant: the first project with a path that is a
    prefix of the cwd wins.
    """
    records, _ = coerce_records(Project, projects)

    result: list[Conversation] = []
    for conv in conversations:
        match: Project | None = None
        if conv.cwd:
            match = next(
                (
                    project
                    for project in records
                    if any(is_path_prefix(path, conv.cwd) for path in project.paths)
                ),
                None,
            )
        result.append(replace(conv, project=match) if match else conv)
    return result
