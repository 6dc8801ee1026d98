"""Readers for the on-disk record stores written by the collectors.

Every reader is tolerant: unreadable files and unparsable lines are skipped
with a warning, never raised. Records are returned as raw mappings so the
correlator can apply its own validation and count what it drops.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def iter_jsonl(path: Path) -> Iterator[dict[str, Any]]:
    """Yield JSON objects from a JSONL file, skipping malformed lines."""
    # Undecodable bytes become U+FFFD and fail parsing for that line only
    try:
        f = path.open(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(
            "jsonl_open_error", extra={"file": str(path), "error.message": str(e)}
        )
        return

    with f:
        for line_num, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                value = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(
                    "jsonl_parse_error",
                    extra={
                        "line_num": line_num,
                        "file": str(path),
                        "error.message": str(e),
                    },
                )
                continue
            if isinstance(value, dict):
                yield value


def _daily_files(directory: Path, prefix: str) -> list[Path]:
    """Legacy single file first, then dated files in name order."""
    if not directory.is_dir():
        return []
    files: list[Path] = []
    legacy = directory / f"{prefix}.jsonl"
    if legacy.is_file():
        files.append(legacy)
    files.extend(sorted(directory.glob(f"{prefix}_*.jsonl")))
    return files


def _field(record: dict[str, Any], snake: str, camel: str) -> Any:
    return record[snake] if snake in record else record.get(camel)


def _recent(value: Any, since_ms: int | None) -> bool:
    if since_ms is None:
        return True
    return isinstance(value, int | float) and value >= since_ms


def load_hook_sessions(
    hooks_dir: Path, since_ms: int | None = None
) -> list[dict[str, Any]]:
    """Load hook sessions, keeping the latest record per session id."""
    sessions: dict[str, dict[str, Any]] = {}
    for path in _daily_files(hooks_dir, "sessions"):
        for record in iter_jsonl(path):
            session_id = _field(record, "session_id", "sessionId")
            if not session_id:
                continue
            if not _recent(_field(record, "start_time", "startTime"), since_ms):
                continue
            sessions[str(session_id)] = record
    return list(sessions.values())


def load_tool_usages(
    hooks_dir: Path, since_ms: int | None = None
) -> dict[str, list[dict[str, Any]]]:
    """Load tool usages grouped by the session they belong to."""
    by_session: dict[str, list[dict[str, Any]]] = {}
    for path in _daily_files(hooks_dir, "tool_usages"):
        for record in iter_jsonl(path):
            session_id = _field(record, "session_id", "sessionId")
            if not session_id:
                continue
            if not _recent(record.get("timestamp"), since_ms):
                continue
            by_session.setdefault(str(session_id), []).append(record)
    return by_session


def load_transcripts(
    index_path: Path, since_ms: int | None = None
) -> list[dict[str, Any]]:
    """Load transcript metadata from the discovery index."""
    if not index_path.is_file():
        return []
    return [
        record
        for record in iter_jsonl(index_path)
        if _recent(_field(record, "modified_at", "modifiedAt"), since_ms)
    ]


def load_process_snapshots(
    process_dir: Path, since_ms: int | None = None
) -> list[dict[str, Any]]:
    """Load process snapshots from the daily snapshot logs."""
    return [
        record
        for path in _daily_files(process_dir, "snapshots")
        for record in iter_jsonl(path)
        if _recent(record.get("timestamp"), since_ms)
    ]


def load_managed_sessions(
    sessions_dir: Path, since_ms: int | None = None
) -> list[dict[str, Any]]:
    """Load managed runs, one JSON document per file."""
    if not sessions_dir.is_dir():
        return []

    sessions: list[dict[str, Any]] = []
    for path in sorted(sessions_dir.glob("*.json")):
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                "managed_session_read_error",
                extra={"file": str(path), "error.message": str(e)},
            )
            continue
        if not isinstance(record, dict):
            continue
        if _recent(_field(record, "started_at", "startedAt"), since_ms):
            sessions.append(record)
    return sessions


def load_transcript_messages(path: Path) -> list[dict[str, Any]]:
    """Load the message entries of a transcript file."""
    if not path.is_file():
        return []
    return list(iter_jsonl(path))
