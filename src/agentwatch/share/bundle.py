"""Bundle prepared sessions as JSONL or a zip of JSONL."""

from __future__ import annotations

import hashlib
import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from agentwatch.redaction.residue import residue_check
from agentwatch.redaction.sanitizer import iter_strings
from agentwatch.share.preparer import canonical_json, content_hash
from agentwatch.share.types import PreparationResult, PreparedSession

logger = logging.getLogger(__name__)

BundleFormat = Literal["jsonl", "zip", "auto"]

BUNDLE_ENTRY_NAME = "bundle.jsonl"
# Largest bundle written as plain JSONL under "auto"
AUTO_JSONL_MAX_SESSIONS = 3
# Zip entries carry a fixed timestamp so identical input zips identically
_ZIP_DATE = (1980, 1, 1, 0, 0, 0)


class BundleError(Exception):
    """A bundle cannot be built from the given result."""


@dataclass(frozen=True)
class Bundle:
    bundle_id: str
    format: Literal["jsonl", "zip"]
    content: bytes
    session_count: int

    @property
    def filename(self) -> str:
        return f"agentwatch-bundle-{self.bundle_id}.{self.format}"

    def write(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_bytes(self.content)
        return path


def bundle_id_for(sessions: list[PreparedSession]) -> str:
    digest = hashlib.sha256()
    for session in sessions:
        digest.update(session.content_sha256.encode("ascii"))
        digest.update(b"\n")
    return digest.hexdigest()[:16]


def _verify(session: PreparedSession) -> None:
    if content_hash(session.data) != session.content_sha256:
        raise BundleError(f"Session {session.session_id} changed after preparation")
    residue = residue_check(iter_strings(session.data, include_keys=True))
    if residue.blocked:
        raise BundleError(
            f"Session {session.session_id} is blocked: {'; '.join(residue.warnings)}"
        )


def manifest(result: PreparationResult, bundle_id: str) -> dict[str, Any]:
    report = result.redaction_report
    return {
        "type": "manifest",
        "bundle_id": bundle_id,
        "version": result.app_version,
        "session_count": len(result.sessions),
        "contributor": result.contributor.to_dict(),
        "sanitization": {
            "profile_id": result.profile_id,
            "enabled_categories": list(report.enabled_categories),
            "total_redactions": report.total_redactions,
            "counts_by_category": dict(sorted(report.counts_by_category.items())),
            "high_entropy_redactions": report.high_entropy_redactions,
            "residue_warnings": list(result.residue_warnings),
            "stripped_fields": list(result.stripped_fields),
        },
    }


def session_record(session: PreparedSession) -> dict[str, Any]:
    return {
        "type": "session",
        "session_id": session.session_id,
        "source": session.source,
        "content_sha256": session.content_sha256,
        "score": session.score,
        "mtime_utc": session.mtime_utc,
        "data": session.data,
    }


def render_jsonl(result: PreparationResult, bundle_id: str) -> str:
    lines = [canonical_json(manifest(result, bundle_id))]
    lines.extend(canonical_json(session_record(s)) for s in result.sessions)
    return "\n".join(lines) + "\n"


def _zip(text: str) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        info = zipfile.ZipInfo(BUNDLE_ENTRY_NAME, date_time=_ZIP_DATE)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        archive.writestr(info, text.encode("utf-8"))
    return buffer.getvalue()


def build_bundle(result: PreparationResult, format: BundleFormat = "jsonl") -> Bundle:
    """Serialize the prepared sessions of ``result``.

    Every session is re-checked before serialization; a session whose data
    no longer matches its hash or that carries blocking residue refuses
    the whole bundle.

    Raises:
        BundleError: No sessions, or a session failed its re-check.
    """
    if not result.sessions:
        raise BundleError("No prepared sessions to bundle")
    for session in result.sessions:
        _verify(session)

    if format == "auto":
        resolved = "jsonl" if len(result.sessions) <= AUTO_JSONL_MAX_SESSIONS else "zip"
    elif format in ("jsonl", "zip"):
        resolved = format
    else:
        raise BundleError(f"Unknown bundle format: {format}")

    bundle_id = bundle_id_for(result.sessions)
    text = render_jsonl(result, bundle_id)
    content = text.encode("utf-8") if resolved == "jsonl" else _zip(text)

    logger.info(
        "Built %s bundle %s with %d sessions",
        resolved,
        bundle_id,
        len(result.sessions),
        extra={"bytes": len(content)},
    )
    return Bundle(
        bundle_id=bundle_id,
        format=resolved,
        content=content,
        session_count=len(result.sessions),
    )
