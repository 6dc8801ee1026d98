"""Redaction configuration and reporting types."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SECRETS = "secrets"
PII = "pii"
PATHS = "paths"
CUSTOM = "custom"
HIGH_ENTROPY = "high_entropy"


class RedactionConfig(BaseModel):
    """Which redaction categories run, plus user patterns and entropy policy."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    redact_secrets: bool = True
    redact_pii: bool = True
    redact_paths: bool = True
    custom_patterns: list[str] = Field(default_factory=list)
    enable_high_entropy: bool = True
    # Bits per character a token must exceed to be treated as a secret
    high_entropy_threshold: float = Field(default=4.0, gt=0.0)
    high_entropy_min_length: int = Field(default=20, ge=8)

    @field_validator("custom_patterns")
    @classmethod
    def _patterns_compile(cls, value: list[str]) -> list[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid custom pattern {pattern!r}: {e}") from e
        return value

    @property
    def enabled_categories(self) -> list[str]:
        categories = []
        if self.redact_secrets:
            categories.append(SECRETS)
        if self.redact_pii:
            categories.append(PII)
        if self.redact_paths:
            categories.append(PATHS)
        if self.custom_patterns:
            categories.append(CUSTOM)
        if self.enable_high_entropy:
            categories.append(HIGH_ENTROPY)
        return categories

    def to_dict(self) -> dict[str, Any]:
        return {
            "redact_secrets": self.redact_secrets,
            "redact_pii": self.redact_pii,
            "redact_paths": self.redact_paths,
            "custom_patterns": list(self.custom_patterns),
            "enable_high_entropy": self.enable_high_entropy,
            "high_entropy_threshold": self.high_entropy_threshold,
            "high_entropy_min_length": self.high_entropy_min_length,
        }


@dataclass
class RedactionReport:
    """What a sanitizer replaced.

    High-entropy replacements are speculative, so they are kept out of
    ``counts_by_category`` and reported on their own; ``total_redactions``
    includes them.
    """

    total_redactions: int = 0
    counts_by_category: dict[str, int] = field(default_factory=dict)
    high_entropy_redactions: int = 0
    counts_by_rule: dict[str, int] = field(default_factory=dict)
    enabled_categories: list[str] = field(default_factory=list)

    def merge(self, other: RedactionReport) -> RedactionReport:
        categories = Counter(self.counts_by_category)
        categories.update(other.counts_by_category)
        rules = Counter(self.counts_by_rule)
        rules.update(other.counts_by_rule)
        enabled = list(self.enabled_categories)
        enabled.extend(c for c in other.enabled_categories if c not in enabled)
        return RedactionReport(
            total_redactions=self.total_redactions + other.total_redactions,
            counts_by_category=dict(sorted(categories.items())),
            high_entropy_redactions=(
                self.high_entropy_redactions + other.high_entropy_redactions
            ),
            counts_by_rule=dict(sorted(rules.items())),
            enabled_categories=enabled,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_redactions": self.total_redactions,
            "counts_by_category": dict(sorted(self.counts_by_category.items())),
            "high_entropy_redactions": self.high_entropy_redactions,
            "counts_by_rule": dict(sorted(self.counts_by_rule.items())),
            "enabled_categories": list(self.enabled_categories),
        }
