"""Redaction profiles: field whitelists and their persistence."""

from agentwatch.profiles.builtin import (
    BUILTIN_PROFILES,
    DEFAULT_PROFILE_ID,
    RedactionProfile,
)
from agentwatch.profiles.fields import (
    FieldKind,
    FieldPattern,
    apply_field_selection,
    collect_field_paths,
    stripped_field_paths,
)
from agentwatch.profiles.store import (
    ProfileError,
    ProfileStore,
    UnknownProfileError,
    resolve_profile,
)

__all__ = [
    "BUILTIN_PROFILES",
    "DEFAULT_PROFILE_ID",
    "FieldKind",
    "FieldPattern",
    "ProfileError",
    "ProfileStore",
    "RedactionProfile",
    "UnknownProfileError",
    "apply_field_selection",
    "collect_field_paths",
    "resolve_profile",
    "stripped_field_paths",
]
