"""Last-line check for sensitive content that survived sanitization."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ResidueSignature:
    name: str
    warning: str
    pattern: re.Pattern[str]
    blocking: bool = False


RESIDUE_SIGNATURES: tuple[ResidueSignature, ...] = (
    ResidueSignature(
        "private_key",
        "Possible private key detected",
        re.compile(r"-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----", re.ASCII),
        blocking=True,
    ),
    ResidueSignature(
        "bearer_token",
        "Possible bearer token detected",
        re.compile(r"\bBearer\s+[A-Za-z0-9._~+/=-]{16,}", re.ASCII | re.IGNORECASE),
    ),
    ResidueSignature(
        "email",
        "Possible email address detected",
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII),
    ),
)


@dataclass
class ResidueResult:
    warnings: list[str] = field(default_factory=list)
    blocked: bool = False
    # signature name -> number of hits
    hits: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "warnings": list(self.warnings),
            "blocked": self.blocked,
            "hits": dict(self.hits),
        }


def residue_check(strings: Iterable[str] | str) -> ResidueResult:
    """Scan already-sanitized strings for leftovers.

    Produces one warning per signature that matched anywhere. A private key
    header blocks the content outright.
    """
    if isinstance(strings, str):
        strings = [strings]

    hits = dict.fromkeys((s.name for s in RESIDUE_SIGNATURES), 0)
    for text in strings:
        for signature in RESIDUE_SIGNATURES:
            hits[signature.name] += len(signature.pattern.findall(text))

    result = ResidueResult()
    for signature in RESIDUE_SIGNATURES:
        count = hits[signature.name]
        if not count:
            continue
        result.hits[signature.name] = count
        result.warnings.append(signature.warning)
        if signature.blocking:
            result.blocked = True
    return result
