"""Pattern-based redaction of secrets, personal data and local paths."""

from agentwatch.redaction.entropy import shannon_entropy
from agentwatch.redaction.patterns import (
    BUILTIN_RULES,
    InvalidPatternError,
    PatternMatch,
    PatternRule,
    build_rules,
    list_patterns,
    scan_patterns,
    validate_pattern,
)
from agentwatch.redaction.residue import ResidueResult, residue_check
from agentwatch.redaction.sanitizer import Sanitizer, iter_strings, sanitize
from agentwatch.redaction.types import RedactionConfig, RedactionReport

__all__ = [
    "BUILTIN_RULES",
    "InvalidPatternError",
    "PatternMatch",
    "PatternRule",
    "RedactionConfig",
    "RedactionReport",
    "ResidueResult",
    "Sanitizer",
    "build_rules",
    "iter_strings",
    "list_patterns",
    "residue_check",
    "sanitize",
    "scan_patterns",
    "shannon_entropy",
    "validate_pattern",
]
