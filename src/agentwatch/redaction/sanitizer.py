"""Recursive sanitization of transcript data."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator
from typing import Any

from agentwatch.redaction.entropy import candidate_pattern, looks_like_secret
from agentwatch.redaction.patterns import (
    HIGH_ENTROPY_PLACEHOLDER,
    PLACEHOLDER_RE,
    PatternRule,
    build_rules,
)
from agentwatch.redaction.types import RedactionConfig, RedactionReport

logger = logging.getLogger(__name__)


class Sanitizer:
    """Applies redaction rules to strings and nested JSON-like values.

    Counts accumulate across calls until ``reset()``; ``get_report()``
    summarizes everything redacted so far.
    """

    def __init__(
        self,
        config: RedactionConfig | None = None,
        rules: list[PatternRule] | None = None,
    ) -> None:
        self.config = config or RedactionConfig()
        self.rules = rules if rules is not None else build_rules(self.config)
        self._by_rule: Counter[str] = Counter()
        self._by_category: Counter[str] = Counter()
        self._high_entropy = 0

    def reset(self) -> None:
        self._by_rule.clear()
        self._by_category.clear()
        self._high_entropy = 0

    def redact_text(self, text: str) -> str:
        if not text:
            return text
        for rule in self.rules:
            text, count = rule.substitute(text)
            if count:
                self._by_rule[rule.name] += count
                self._by_category[rule.category] += count
        if self.config.enable_high_entropy:
            text = self._redact_high_entropy(text)
        return text

    def redact_object(self, value: Any) -> Any:
        """Return a copy of ``value`` with every string leaf redacted.

        Mapping keys are structure, not content, and are left alone.
        """
        if isinstance(value, str):
            return self.redact_text(value)
        if isinstance(value, dict):
            return {key: self.redact_object(item) for key, item in value.items()}
        if isinstance(value, list | tuple):
            return [self.redact_object(item) for item in value]
        return value

    def get_report(self) -> RedactionReport:
        named = sum(self._by_category.values())
        return RedactionReport(
            total_redactions=named + self._high_entropy,
            counts_by_category=dict(sorted(self._by_category.items())),
            high_entropy_redactions=self._high_entropy,
            counts_by_rule=dict(sorted(self._by_rule.items())),
            enabled_categories=self.config.enabled_categories,
        )

    def _redact_high_entropy(self, text: str) -> str:
        pattern = candidate_pattern(self.config.high_entropy_min_length)
        threshold = self.config.high_entropy_threshold

        def _replace(match: Any) -> str:
            token = match.group(0)
            if not looks_like_secret(token, threshold):
                return token
            self._high_entropy += 1
            return HIGH_ENTROPY_PLACEHOLDER

        parts = PLACEHOLDER_RE.split(text)
        for i in range(0, len(parts), 2):
            if parts[i]:
                parts[i] = pattern.sub(_replace, parts[i])
        return "".join(parts)


def sanitize(
    value: Any, config: RedactionConfig | None = None
) -> tuple[Any, RedactionReport]:
    """Redact ``value`` (a string or nested structure) in one call."""
    sanitizer = Sanitizer(config)
    output = sanitizer.redact_object(value)
    report = sanitizer.get_report()
    if report.total_redactions:
        logger.debug(
            "Redacted %d values",
            report.total_redactions,
            extra={"counts_by_category": report.counts_by_category},
        )
    return output, report


def iter_strings(value: Any, include_keys: bool = False) -> Iterator[str]:
    """Yield every string in a nested structure, depth first."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for key, item in value.items():
            if include_keys and isinstance(key, str):
                yield key
            yield from iter_strings(item, include_keys)
    elif isinstance(value, list | tuple):
        for item in value:
            yield from iter_strings(item, include_keys)
