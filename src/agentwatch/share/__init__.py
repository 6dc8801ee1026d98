"""Preparing sessions for sharing and bundling them for export."""

from agentwatch.share.bundle import Bundle, BundleError, build_bundle
from agentwatch.share.preparer import (
    canonical_json,
    content_hash,
    prepare_sessions,
    raw_session_from_conversation,
)
from agentwatch.share.quality import QualitySignals, quality_signals, score_session
from agentwatch.share.types import (
    BlockedSession,
    ContributorMeta,
    PreparationConfig,
    PreparationResult,
    PreparedSession,
    RawSession,
    SkippedSession,
)

__all__ = [
    "BlockedSession",
    "Bundle",
    "BundleError",
    "ContributorMeta",
    "PreparationConfig",
    "PreparationResult",
    "PreparedSession",
    "QualitySignals",
    "RawSession",
    "SkippedSession",
    "build_bundle",
    "canonical_json",
    "content_hash",
    "prepare_sessions",
    "quality_signals",
    "raw_session_from_conversation",
    "score_session",
]
