"""Whitelist field selection over nested session data.

Paths are dotted (``session.tool_count``); ``[]`` after a segment stands
for every element of that array (``messages[].role``), and ``*`` keeps
everything.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

ARRAY_SUFFIX = "[]"


class FieldKind(StrEnum):
    ALL = "all"
    EXACT = "exact"
    ARRAY = "array"


@dataclass(frozen=True)
class FieldPattern:
    kind: FieldKind
    path: str

    @classmethod
    def parse(cls, raw: str) -> FieldPattern:
        path = raw.strip()
        if path == "*":
            return cls(FieldKind.ALL, "*")
        if not path or path.startswith(".") or path.endswith("."):
            raise ValueError(f"Invalid field path: {raw!r}")
        if path.endswith(ARRAY_SUFFIX):
            return cls(FieldKind.ARRAY, path)
        return cls(FieldKind.EXACT, path)

    def ancestors(self) -> list[str]:
        """Every proper ancestor path, shallowest first."""
        if self.kind is FieldKind.ALL:
            return []
        result = []
        for i, char in enumerate(self.path):
            if char == "." and i > 0:
                result.append(self.path[:i])
            elif self.path.startswith(ARRAY_SUFFIX, i) and i > 0:
                result.append(self.path[:i])
        return result


def _child(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


class _Selection:
    def __init__(self, patterns: list[FieldPattern]) -> None:
        self.kept = {p.path for p in patterns}
        self.ancestors = {a for p in patterns for a in p.ancestors()}

    def select(self, node: Any, path: str) -> Any:
        if isinstance(node, dict):
            result = {}
            for key, value in node.items():
                child = _child(path, str(key))
                if child in self.ancestors:
                    if isinstance(value, dict | list):
                        result[key] = self.select(value, child)
                    elif child in self.kept:
                        result[key] = value
                elif child in self.kept:
                    result[key] = copy.deepcopy(value)
            return result
        if isinstance(node, list):
            element = path + ARRAY_SUFFIX
            if element in self.ancestors:
                return [
                    self.select(item, element) if isinstance(item, dict | list) else item
                    for item in node
                ]
            return copy.deepcopy(node)
        return node


def apply_field_selection(data: Any, kept_fields: list[str]) -> Any:
    """Return a copy of ``data`` holding only the whitelisted fields.

    A field is kept when a pattern names it exactly; its ancestors are kept
    as containers holding only the selected descendants. A pattern naming a
    container with no deeper patterns keeps that container whole.

    Raises ValueError for malformed patterns.
    """
    patterns = [FieldPattern.parse(raw) for raw in kept_fields]
    if any(p.kind is FieldKind.ALL for p in patterns):
        return copy.deepcopy(data)
    if isinstance(data, list):
        if not patterns:
            return []
        # A top-level array is addressed through its element marker
        patterns = [
            p
            if p.path.startswith(ARRAY_SUFFIX)
            else FieldPattern(p.kind, f"{ARRAY_SUFFIX}.{p.path}")
            for p in patterns
        ]
        return _Selection(patterns).select(data, "")
    if not patterns or not isinstance(data, dict):
        return {}
    return _Selection(patterns).select(data, "")


def collect_field_paths(data: Any, prefix: str = "") -> list[str]:
    """Every normalized field path present in ``data``, sorted."""
    paths: set[str] = set()
    _collect(data, prefix, paths)
    return sorted(paths)


def _collect(node: Any, path: str, paths: set[str]) -> None:
    if isinstance(node, dict):
        for key, value in node.items():
            child = _child(path, str(key))
            paths.add(child)
            _collect(value, child, paths)
    elif isinstance(node, list):
        element = path + ARRAY_SUFFIX
        for item in node:
            if isinstance(item, dict | list):
                _collect(item, element, paths)


def stripped_field_paths(original: Any, selected: Any) -> list[str]:
    """Paths present in ``original`` but missing after selection."""
    return sorted(set(collect_field_paths(original)) - set(collect_field_paths(selected)))
