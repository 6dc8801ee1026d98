"""Redaction profiles and the built-in set, most permissive first."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from agentwatch.profiles.fields import FieldPattern
from agentwatch.redaction.types import RedactionConfig

DEFAULT_PROFILE_ID = "moderate"


class RedactionProfile(BaseModel):
    """A named field whitelist plus the redaction settings to apply."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    name: str
    description: str = ""
    kept_fields: list[str] = Field(default_factory=list)
    redaction: RedactionConfig = Field(default_factory=RedactionConfig)
    is_default: bool = False
    builtin: bool = False

    @field_validator("kept_fields")
    @classmethod
    def _fields_parse(cls, value: list[str]) -> list[str]:
        for raw in value:
            FieldPattern.parse(raw)
        return value

    @property
    def keeps_everything(self) -> bool:
        return "*" in self.kept_fields

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "kept_fields": list(self.kept_fields),
            "redaction": self.redaction.to_dict(),
            "is_default": self.is_default,
            "builtin": self.builtin,
        }


_SESSION_STATS = [
    "session",
    "session.session_id",
    "session.start_time",
    "session.end_time",
    "session.tool_count",
    "session.tools_used",
    "session.total_input_tokens",
    "session.total_output_tokens",
    "session.estimated_cost_usd",
]

BUILTIN_PROFILES: tuple[RedactionProfile, ...] = (
    RedactionProfile(
        id="full-content",
        name="All (High Risk)",
        description=(
            "Includes every field, including file contents the agent read. "
            "Only use after auditing the transcript for sensitive data."
        ),
        kept_fields=["*"],
        builtin=True,
    ),
    RedactionProfile(
        id="moderate",
        name="Moderate",
        description=(
            "Keeps tool usage patterns and token metrics but strips all content."
        ),
        kept_fields=[
            *_SESSION_STATS,
            "session.permission_mode",
            "session.source",
            "tool_usages",
            "tool_usages[].tool_use_id",
            "tool_usages[].tool_name",
            "tool_usages[].timestamp",
            "tool_usages[].session_id",
            "tool_usages[].success",
            "tool_usages[].duration_ms",
            "messages",
            "messages[].uuid",
            "messages[].role",
            "messages[].timestamp",
            "messages[].parentUuid",
            "messages[].message.role",
            "messages[].message.model",
            "messages[].message.usage",
            "messages[].message.stop_reason",
            "type",
            "total_input_tokens",
            "total_output_tokens",
        ],
        is_default=True,
        builtin=True,
    ),
    RedactionProfile(
        id="metadata-only",
        name="Minimal (Safest)",
        description=(
            "Only session-level statistics: no tool details, messages or file "
            "contents."
        ),
        kept_fields=[*_SESSION_STATS, "total_input_tokens", "total_output_tokens"],
        builtin=True,
    ),
)

BUILTIN_PROFILE_IDS = frozenset(p.id for p in BUILTIN_PROFILES)


def get_builtin_profile(profile_id: str) -> RedactionProfile | None:
    return next((p for p in BUILTIN_PROFILES if p.id == profile_id), None)
