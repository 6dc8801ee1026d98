"""Turn raw sessions into sanitized, hashed, shareable records.

Each session runs through field selection, redaction and a residue check
independently; a session that fails any step is reported and left out
without affecting the others.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from agentwatch.correlation.types import Conversation
from agentwatch.profiles.fields import (
    apply_field_selection,
    collect_field_paths,
    stripped_field_paths,
)
from agentwatch.redaction.residue import residue_check
from agentwatch.redaction.sanitizer import Sanitizer, iter_strings
from agentwatch.redaction.types import RedactionReport
from agentwatch.share.quality import score_session
from agentwatch.share.types import (
    BlockedSession,
    PreparationConfig,
    PreparationResult,
    PreparationStats,
    PreparedSession,
    RawSession,
    SkippedSession,
)

logger = logging.getLogger(__name__)


def canonical_json(value: Any) -> str:
    """Serialization the content hash is computed over."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def content_hash(value: Any) -> str:
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


def _parse(raw: RawSession) -> dict[str, Any]:
    data = raw.data
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    if isinstance(data, str):
        data = json.loads(data)
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _preview(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


def prepare_sessions(
    raw_sessions: Iterable[RawSession], config: PreparationConfig | None = None
) -> PreparationResult:
    """Prepare sessions for sharing.

    Never raises for an individual session: unparsable sessions are
    skipped, sessions whose sanitized output still holds blocking residue
    are blocked, and both are listed in the result.
    """
    config = config or PreparationConfig()
    result = PreparationResult(
        contributor=config.contributor,
        app_version=config.app_version,
        profile_id=config.profile_id,
    )
    stats = PreparationStats()
    report = RedactionReport(enabled_categories=config.redaction.enabled_categories)
    warnings: list[str] = []
    present: set[str] = set()
    stripped: set[str] = set()
    seen: set[str] = set()

    for raw in raw_sessions:
        stats.total_sessions += 1
        if raw.session_id in seen:
            result.skipped_sessions.append(
                SkippedSession(raw.session_id, "duplicate session id")
            )
            continue
        seen.add(raw.session_id)

        try:
            prepared = _prepare_one(raw, config)
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning(
                "Skipping session %s: %s",
                raw.session_id,
                e,
                extra={"source": raw.source},
            )
            result.skipped_sessions.append(SkippedSession(raw.session_id, str(e)))
            continue

        present.update(prepared.fields_present)
        stripped.update(prepared.stripped_fields)
        for warning in prepared.warnings:
            if warning not in warnings:
                warnings.append(warning)

        if prepared.blocked:
            logger.warning(
                "Blocked session %s",
                raw.session_id,
                extra={"warnings": prepared.warnings},
            )
            result.blocked_sessions.append(
                BlockedSession(raw.session_id, raw.source, prepared.warnings)
            )
            continue

        report = report.merge(prepared.session.redaction)
        stats.total_chars += prepared.session.approx_chars
        result.sessions.append(prepared.session)

    stats.prepared = len(result.sessions)
    stats.blocked = len(result.blocked_sessions)
    stats.skipped = len(result.skipped_sessions)
    stats.total_redactions = report.total_redactions

    result.redaction_report = report
    result.residue_warnings = warnings
    result.fields_present = sorted(present)
    result.stripped_fields = sorted(stripped)
    result.stats = stats

    logger.info(
        "Prepared %d of %d sessions",
        stats.prepared,
        stats.total_sessions,
        extra=stats.to_dict(),
    )
    return result


@dataclass(frozen=True)
class _Outcome:
    session: PreparedSession
    warnings: list[str]
    blocked: bool
    fields_present: list[str]
    stripped_fields: list[str]


def _prepare_one(raw: RawSession, config: PreparationConfig) -> _Outcome:
    data = _parse(raw)
    if config.selected_fields is None:
        selected = data
    else:
        selected = apply_field_selection(data, config.selected_fields)

    sanitizer = Sanitizer(config.redaction)
    sanitized = sanitizer.redact_object(selected)
    residue = residue_check(iter_strings(sanitized, include_keys=True))

    fields_present = collect_field_paths(data)
    stripped = stripped_field_paths(data, selected)
    redacted_text = canonical_json(sanitized)
    session = PreparedSession(
        session_id=raw.session_id,
        source=raw.source,
        data=sanitized,
        content_sha256=content_hash(sanitized),
        preview_original=_preview(canonical_json(selected), config.preview_chars),
        preview_redacted=_preview(redacted_text, config.preview_chars),
        score=score_session(data),
        redaction=sanitizer.get_report(),
        warnings=list(residue.warnings),
        fields_present=fields_present,
        stripped_fields=stripped,
        approx_chars=len(redacted_text),
        mtime_utc=raw.mtime_utc,
        source_path_hint=raw.source_path_hint,
    )
    return _Outcome(session, residue.warnings, residue.blocked, fields_present, stripped)


def _source_label(conv: Conversation) -> str:
    if conv.transcript is None:
        return "cc_hook"
    if conv.agent == "claude":
        return "cc_transcript"
    return f"{conv.agent}_transcript"


def _iso(ms: int | None) -> str | None:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, UTC).isoformat().replace("+00:00", "Z")


def raw_session_from_conversation(
    conv: Conversation, messages: list[dict[str, Any]] | None = None
) -> RawSession:
    """Assemble the shareable payload for one conversation.

    ``messages`` are the parsed transcript lines, loaded by the caller.
    """
    hook = conv.hook_session
    data: dict[str, Any] = {
        "type": "conversation",
        "correlation_id": conv.correlation_id,
        "match_type": conv.match_type,
        "agent": conv.agent,
        "session": hook.to_dict() if hook else None,
        "transcript": conv.transcript.to_dict() if conv.transcript else None,
        "tool_usages": [u.to_dict() for u in conv.tool_usages],
        "messages": list(messages or []),
        "total_input_tokens": hook.total_input_tokens if hook else 0,
        "total_output_tokens": hook.total_output_tokens if hook else 0,
    }
    return RawSession(
        session_id=conv.correlation_id,
        source=_source_label(conv),
        data=data,
        mtime_utc=_iso(conv.end_time or conv.start_time),
        source_path_hint=conv.transcript.path if conv.transcript else None,
    )
