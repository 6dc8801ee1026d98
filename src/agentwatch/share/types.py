"""Inputs and outputs of session preparation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from agentwatch import __version__
from agentwatch.profiles.builtin import RedactionProfile
from agentwatch.profiles.fields import FieldPattern
from agentwatch.redaction.types import RedactionConfig, RedactionReport


class ContributorMeta(BaseModel):
    """Who is sharing, and on what terms."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    contributor_id: str = "anonymous"
    license: str = "CC-BY-4.0"
    ai_preference: str = "train-genai=deny"
    rights_statement: str = "I have the right to share this data."
    rights_confirmed: bool = False
    reviewed_confirmed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "contributor_id": self.contributor_id,
            "license": self.license,
            "ai_preference": self.ai_preference,
            "rights_statement": self.rights_statement,
            "rights_confirmed": self.rights_confirmed,
            "reviewed_confirmed": self.reviewed_confirmed,
        }


class PreparationConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    redaction: RedactionConfig = Field(default_factory=RedactionConfig)
    # None keeps every field
    selected_fields: list[str] | None = None
    contributor: ContributorMeta = Field(default_factory=ContributorMeta)
    app_version: str = __version__
    preview_chars: int = Field(default=500, ge=0)
    profile_id: str | None = None

    @field_validator("selected_fields")
    @classmethod
    def _fields_parse(cls, value: list[str] | None) -> list[str] | None:
        for raw in value or []:
            FieldPattern.parse(raw)
        return value

    @classmethod
    def from_profile(
        cls,
        profile: RedactionProfile,
        contributor: ContributorMeta | None = None,
        **overrides: Any,
    ) -> PreparationConfig:
        return cls(
            redaction=profile.redaction,
            selected_fields=list(profile.kept_fields),
            contributor=contributor or ContributorMeta(),
            profile_id=profile.id,
            **overrides,
        )


@dataclass(frozen=True)
class RawSession:
    """A session as collected, before any filtering.

    ``data`` is either a mapping or its JSON text.
    """

    session_id: str
    source: str
    data: Any
    mtime_utc: str | None = None
    source_path_hint: str | None = None


@dataclass
class PreparedSession:
    session_id: str
    source: str
    data: dict[str, Any]
    content_sha256: str
    preview_original: str
    preview_redacted: str
    score: int
    redaction: RedactionReport
    warnings: list[str] = field(default_factory=list)
    fields_present: list[str] = field(default_factory=list)
    stripped_fields: list[str] = field(default_factory=list)
    approx_chars: int = 0
    mtime_utc: str | None = None
    source_path_hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "source": self.source,
            "content_sha256": self.content_sha256,
            "preview_original": self.preview_original,
            "preview_redacted": self.preview_redacted,
            "score": self.score,
            "redaction": self.redaction.to_dict(),
            "warnings": list(self.warnings),
            "fields_present": list(self.fields_present),
            "stripped_fields": list(self.stripped_fields),
            "approx_chars": self.approx_chars,
            "mtime_utc": self.mtime_utc,
            "source_path_hint": self.source_path_hint,
        }


@dataclass(frozen=True)
class BlockedSession:
    session_id: str
    source: str
    warnings: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "source": self.source,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class SkippedSession:
    session_id: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"session_id": self.session_id, "reason": self.reason}


@dataclass
class PreparationStats:
    total_sessions: int = 0
    prepared: int = 0
    blocked: int = 0
    skipped: int = 0
    total_redactions: int = 0
    total_chars: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_sessions": self.total_sessions,
            "prepared": self.prepared,
            "blocked": self.blocked,
            "skipped": self.skipped,
            "total_redactions": self.total_redactions,
            "total_chars": self.total_chars,
        }


@dataclass
class PreparationResult:
    sessions: list[PreparedSession] = field(default_factory=list)
    blocked_sessions: list[BlockedSession] = field(default_factory=list)
    skipped_sessions: list[SkippedSession] = field(default_factory=list)
    redaction_report: RedactionReport = field(default_factory=RedactionReport)
    residue_warnings: list[str] = field(default_factory=list)
    fields_present: list[str] = field(default_factory=list)
    stripped_fields: list[str] = field(default_factory=list)
    stats: PreparationStats = field(default_factory=PreparationStats)
    contributor: ContributorMeta = field(default_factory=ContributorMeta)
    app_version: str = __version__
    profile_id: str | None = None

    @property
    def blocked(self) -> bool:
        return bool(self.blocked_sessions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessions": [s.to_dict() for s in self.sessions],
            "blocked_sessions": [s.to_dict() for s in self.blocked_sessions],
            "skipped_sessions": [s.to_dict() for s in self.skipped_sessions],
            "redaction_report": self.redaction_report.to_dict(),
            "residue_warnings": list(self.residue_warnings),
            "blocked": self.blocked,
            "fields_present": list(self.fields_present),
            "stripped_fields": list(self.stripped_fields),
            "stats": self.stats.to_dict(),
            "contributor": self.contributor.to_dict(),
            "app_version": self.app_version,
            "profile_id": self.profile_id,
        }
