"""High-entropy token detection for secrets no named pattern knows about."""

from __future__ import annotations

import math
import re
from collections import Counter
from functools import lru_cache

# Slashes and dots split tokens so file paths are judged piecewise
_TOKEN_CHARS = r"[A-Za-z0-9+=_-]"
_HEX_OR_UUID = re.compile(r"[0-9a-fA-F-]+")


def shannon_entropy(token: str) -> float:
    """Bits of entropy per character of ``token``."""
    if not token:
        return 0.0
    length = len(token)
    return -sum(
        (n / length) * math.log2(n / length) for n in Counter(token).values()
    )


@lru_cache(maxsize=16)
def candidate_pattern(min_length: int) -> re.Pattern[str]:
    return re.compile(
        rf"(?<!{_TOKEN_CHARS}){_TOKEN_CHARS}{{{min_length},}}(?!{_TOKEN_CHARS})",
        re.ASCII,
    )


def looks_like_secret(token: str, threshold: float) -> bool:
    # Commit SHAs and UUIDs are identifiers, not credentials
    if _HEX_OR_UUID.fullmatch(token):
        return False
    if not any(c.isdigit() for c in token) or not any(c.isalpha() for c in token):
        return False
    return shannon_entropy(token) > threshold


def find_high_entropy(text: str, threshold: float, min_length: int) -> list[str]:
    return [
        match.group(0)
        for match in candidate_pattern(min_length).finditer(text)
        if looks_like_secret(match.group(0), threshold)
    ]
