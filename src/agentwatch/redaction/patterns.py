"""Canonical redaction pattern library.

Rules are grouped by category and applied in the order they are declared.
A rule whose regex defines a ``secret`` named group replaces only that
group, keeping the surrounding label (``API_KEY=``, ``Bearer``) readable.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from agentwatch.redaction.types import CUSTOM, PATHS, PII, SECRETS, RedactionConfig

# Anything already replaced by a rule; never rescanned
PLACEHOLDER_RE = re.compile(r"(\[REDACTED_[A-Z_]+\])")

SECRET_PLACEHOLDER = "[REDACTED_SECRET]"
PRIVATE_KEY_PLACEHOLDER = "[REDACTED_PRIVATE_KEY]"
EMAIL_PLACEHOLDER = "[REDACTED_EMAIL]"
PATH_PLACEHOLDER = "[REDACTED_PATH]"
CUSTOM_PLACEHOLDER = "[REDACTED_CUSTOM]"
HIGH_ENTROPY_PLACEHOLDER = "[REDACTED_HIGH_ENTROPY]"

_FLAGS = re.ASCII


class InvalidPatternError(ValueError):
    """A user-supplied regex does not compile."""


@dataclass(frozen=True)
class PatternRule:
    name: str
    category: str
    placeholder: str
    patterns: tuple[re.Pattern[str], ...]
    description: str = ""

    def substitute(self, text: str) -> tuple[str, int]:
        """Replace every match in ``text``; returns the new text and count.

        Placeholders left by earlier substitutions split the text into
        segments and are never matched again, which keeps redaction
        idempotent.
        """
        count = 0

        def _replace(match: re.Match[str]) -> str:
            nonlocal count
            count += 1
            if "secret" in match.re.groupindex and match.start("secret") >= 0:
                start = match.start("secret") - match.start()
                end = match.end("secret") - match.start()
                full = match.group(0)
                return full[:start] + self.placeholder + full[end:]
            return self.placeholder

        for pattern in self.patterns:
            parts = PLACEHOLDER_RE.split(text)
            # Odd indices are the captured placeholders
            for i in range(0, len(parts), 2):
                if parts[i]:
                    parts[i] = pattern.sub(_replace, parts[i])
            text = "".join(parts)
        return text, count

    def find(self, text: str) -> list[str]:
        matches: list[str] = []
        segments = PLACEHOLDER_RE.split(text)[::2]
        for pattern in self.patterns:
            for match in (m for s in segments for m in pattern.finditer(s)):
                if "secret" in pattern.groupindex and match.start("secret") >= 0:
                    matches.append(match.group("secret"))
                else:
                    matches.append(match.group(0))
        return matches

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "placeholder": self.placeholder,
            "patterns": [p.pattern for p in self.patterns],
            "description": self.description,
        }


def _rule(
    name: str,
    category: str,
    placeholder: str,
    *patterns: str,
    description: str = "",
    flags: int = 0,
) -> PatternRule:
    return PatternRule(
        name=name,
        category=category,
        placeholder=placeholder,
        patterns=tuple(re.compile(p, _FLAGS | flags) for p in patterns),
        description=description,
    )


SECRET_RULES: tuple[PatternRule, ...] = (
    _rule(
        "private_key",
        SECRETS,
        PRIVATE_KEY_PLACEHOLDER,
        r"-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----[\s\S]+?-----END (?:[A-Z0-9]+ )*PRIVATE KEY-----",
        # Truncated blocks
        r"-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----",
        description="PEM private key blocks",
    ),
    _rule(
        "api_key_prefixed",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\bsk-(?:ant-)?[A-Za-z0-9_-]{16,}",
        r"\bgsk_[A-Za-z0-9_-]{10,}",
        r"\bAIza[0-9A-Za-z_-]{20,}",
        r"\bnpm_[A-Za-z0-9]{10,}",
        r"\bhf_[A-Za-z0-9]{20,}",
        r"\b[rs]k_(?:live|test)_[A-Za-z0-9]{16,}",
        description="Provider API keys (Anthropic, OpenAI, Groq, Google, npm, Stripe)",
    ),
    _rule(
        "github_token",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\bgh[pousr]_[A-Za-z0-9]{20,}",
        r"\bgithub_pat_[A-Za-z0-9_]{20,}",
        description="GitHub personal access and OAuth tokens",
    ),
    _rule(
        "aws_access_key",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\b(?:AKIA|ASIA)[A-Z0-9]{16}\b",
        description="AWS access key ids",
    ),
    _rule(
        "slack_token",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\bxox[baprs]-[A-Za-z0-9-]{10,}",
        r"\bxapp-[A-Za-z0-9-]{10,}",
        description="Slack bot, user and app tokens",
    ),
    _rule(
        "jwt",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\beyJ[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}",
        description="JSON web tokens",
    ),
    _rule(
        "bearer_token",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\bBearer\s+(?P<secret>[A-Za-z0-9._~+/=-]{16,})",
        description="Authorization bearer tokens",
        flags=re.IGNORECASE,
    ),
    _rule(
        "url_credentials",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\b[a-z][a-z0-9+.-]*://[^\s:/@]+:(?P<secret>[^\s@/]+)@",
        description="Passwords embedded in URLs",
        flags=re.IGNORECASE,
    ),
    _rule(
        "env_assignment",
        SECRETS,
        SECRET_PLACEHOLDER,
        # At least one char before the keyword so a bare "TOKEN:" heading is left alone
        r"\b[A-Z0-9_]+(?:KEY|TOKEN|SECRET|PASSWORD|PASSWD)\s*[=:]\s*[\"']?(?P<secret>[^\s\"']{8,})",
        description="ENV-style assignments such as API_KEY=value",
    ),
    _rule(
        "credential_phrase",
        SECRETS,
        SECRET_PLACEHOLDER,
        r"\b(?:password|passwd|pwd)[\"']?\s*(?:is\s+|[:=]\s*)[\"']?(?P<secret>[^\s\"',;]{6,})",
        r"\b(?:secret|api[_-]?key|secret[_-]?key|access[_-]?token|auth[_-]?token|token)[\"']?\s*[:=]\s*[\"']?(?P<secret>[^\s\"',;]{6,})",
        description="Passwords and tokens given as key: value",
        flags=re.IGNORECASE,
    ),
)

PII_RULES: tuple[PatternRule, ...] = (
    _rule(
        "email",
        PII,
        EMAIL_PLACEHOLDER,
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
        description="Email addresses",
    ),
    _rule(
        "ssn",
        PII,
        "[REDACTED_SSN]",
        r"\b\d{3}-\d{2}-\d{4}\b",
        description="US social security numbers",
    ),
    _rule(
        "credit_card",
        PII,
        "[REDACTED_CARD]",
        r"\b\d{4}[ -]?\d{4}[ -]?\d{4}[ -]?\d{4}\b",
        description="16-digit card numbers",
    ),
    _rule(
        "phone",
        PII,
        "[REDACTED_PHONE]",
        r"(?<![\w.+-])(?:\+?1[-. ]?)?\(?\d{3}\)?[-. ]\d{3}[-. ]\d{4}(?![\w.-])",
        description="North American phone numbers",
    ),
    _rule(
        "ip_address",
        PII,
        "[REDACTED_IP]",
        r"(?<![\w.])(?:(?:25[0-5]|2[0-4]\d|1?\d?\d)\.){3}(?:25[0-5]|2[0-4]\d|1?\d?\d)(?![\w.])",
        description="IPv4 addresses",
    ),
)

PATH_RULES: tuple[PatternRule, ...] = (
    _rule(
        "user_home",
        PATHS,
        PATH_PLACEHOLDER,
        # Not after a host name, so URL paths like example.com/home/ are kept
        r"(?<![\w.\-])/Users/[^/\s\"'\\:,;]+",
        r"(?<![\w.\-])/home/[^/\s\"'\\:,;]+",
        r"\b[A-Za-z]:\\Users\\[^\\\s\"':,;]+",
        description="Home directories that reveal a username",
    ),
)

BUILTIN_RULES: tuple[PatternRule, ...] = SECRET_RULES + PII_RULES + PATH_RULES


def validate_pattern(pattern: str) -> list[str]:
    """Compile a user pattern and return warnings about it.

    Raises InvalidPatternError if the pattern does not compile.
    """
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(f"Invalid pattern {pattern!r}: {e}") from e

    warnings: list[str] = []
    if compiled.fullmatch(""):
        warnings.append("Pattern matches the empty string")
    if pattern.strip() in (".*", ".+", r"\S+", r"\w+", r"[\s\S]*"):
        warnings.append("Pattern matches almost any text")
    if "secret" in compiled.groupindex:
        warnings.append("Only the 'secret' group will be replaced")
    return warnings


def custom_rules(patterns: Iterable[str]) -> list[PatternRule]:
    rules = []
    for index, pattern in enumerate(patterns, start=1):
        validate_pattern(pattern)
        rules.append(
            PatternRule(
                name=f"custom_{index}",
                category=CUSTOM,
                placeholder=CUSTOM_PLACEHOLDER,
                patterns=(re.compile(pattern),),
                description=f"User pattern {pattern}",
            )
        )
    return rules


def build_rules(config: RedactionConfig) -> list[PatternRule]:
    """Ordered rules for the categories enabled in ``config``."""
    rules: list[PatternRule] = []
    if config.redact_secrets:
        rules.extend(SECRET_RULES)
    if config.redact_pii:
        rules.extend(PII_RULES)
    if config.redact_paths:
        rules.extend(PATH_RULES)
    rules.extend(custom_rules(config.custom_patterns))
    return rules


def list_patterns(
    category: str | None = None, config: RedactionConfig | None = None
) -> list[PatternRule]:
    """Built-in rules, plus the custom rules of ``config`` when given."""
    rules = list(BUILTIN_RULES)
    if config is not None:
        rules.extend(custom_rules(config.custom_patterns))
    if category is not None:
        rules = [r for r in rules if r.category == category]
    return rules


@dataclass
class PatternMatch:
    name: str
    category: str
    matches: list[str] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        return len(self.matches)


def scan_patterns(
    text: str, rules: Iterable[PatternRule] | None = None
) -> list[PatternMatch]:
    """Report which rules match ``text`` without modifying it.

    Rules are tested independently, so one span may be reported by several.
    """
    results = []
    for rule in rules if rules is not None else BUILTIN_RULES:
        matches = rule.find(text)
        if matches:
            results.append(PatternMatch(rule.name, rule.category, matches))
    return results

