"""Centralized logging configuration for agentwatch.

Entry points call configure_logging() once, early.

Logging Levels:
- DEBUG: Dropped records, per-record attach decisions
- INFO: Per-run summaries (correlation, preparation, bundles)
- WARNING: Skipped or blocked sessions, unreadable source files
- ERROR: Failures that abort a command
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TextIO

from agentwatch.redaction.patterns import SECRET_RULES, PatternRule, custom_rules

# Default retention period for log files
DEFAULT_LOG_RETENTION_DAYS = 7

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class LogRedactor:
    """Masks secrets in log messages with the pattern library's secret rules."""

    rules: list[PatternRule] = field(default_factory=lambda: list(SECRET_RULES))
    enabled: bool = True

    def redact(self, text: str) -> str:
        if not self.enabled or not text:
            return text
        for rule in self.rules:
            text, _ = rule.substitute(text)
        return text


# Module-level redactor instance
_redactor = LogRedactor()


def configure_redaction(
    enabled: bool = True, extra_patterns: list[str] | None = None
) -> None:
    """Configure secret redaction for log files.

    Args:
        enabled: Whether to enable redaction.
        extra_patterns: Additional regex patterns to match secrets.

    Raises:
        InvalidPatternError: If an extra pattern does not compile.
    """
    global _redactor
    rules = list(SECRET_RULES)
    rules.extend(custom_rules(extra_patterns or []))
    _redactor = LogRedactor(rules=rules, enabled=enabled)


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    suffix: str = ".jsonl",
) -> int:
    """Delete ``*suffix`` files not modified within ``retention_days``.

    Returns the number of files deleted.
    """
    if not logs_dir.is_dir():
        return 0

    cutoff = (datetime.now(UTC) - timedelta(days=retention_days)).timestamp()
    stale = [
        path
        for path in logs_dir.glob(f"*{suffix}")
        if path.is_file() and path.stat().st_mtime < cutoff
    ]
    deleted = 0
    for path in stale:
        # Another process may prune the same directory
        path.unlink(missing_ok=True)
        deleted += 1
    return deleted


def _component(name: str) -> str:
    parts = name.split(".")
    if len(parts) >= 2 and parts[0] == "agentwatch":
        return parts[1]
    return parts[0]


# Attributes every LogRecord has; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "component"}


def _record_extra(record: logging.LogRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS
    }


class JSONLHandler(logging.Handler):
    """Handler that writes structured log entries to a JSONL file.

    Logs are written to ~/.agentwatch/logs/YYYY-MM-DD.jsonl, one JSON object
    per line, rotated daily and pruned after the retention period. Messages,
    exceptions and extra fields pass through the secret redactor.
    """

    def __init__(
        self,
        logs_dir: Path,
        retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    ):
        super().__init__()
        self._logs_dir = logs_dir
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        self._retention_days = retention_days
        self._current_date: str | None = None
        self._file: TextIO | None = None

    def _stream(self) -> TextIO:
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        if self._file is not None and self._current_date == today:
            return self._file
        if self._file is not None:
            self._file.close()
        self._current_date = today
        self._file = (self._logs_dir / f"{today}.jsonl").open("a", encoding="utf-8")
        # Prune once per rotation
        prune_old_logs(self._logs_dir, self._retention_days)
        return self._file

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry: dict[str, object] = {
                "ts": datetime.now(UTC).isoformat(),
                "level": record.levelname,
                "component": _component(record.name),
                "logger": record.name,
                "message": _redactor.redact(record.getMessage()),
            }

            if record.exc_info:
                formatter = self.formatter or logging.Formatter()
                exception_text = formatter.formatException(record.exc_info)
                entry["exception"] = _redactor.redact(exception_text)

            extra = _record_extra(record)
            if extra:
                redacted_str = _redactor.redact(json.dumps(extra, default=str))
                try:
                    entry["extra"] = json.loads(redacted_str)
                except json.JSONDecodeError:
                    # Redaction broke JSON structure
                    entry["extra"] = {"_redacted_raw": redacted_str}

            log_file = self._stream()
            log_file.write(json.dumps(entry) + "\n")
            log_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Formatter that shortens logger paths to component names.

    - agentwatch.correlation.correlator -> correlation
    - agentwatch.share.preparer -> share
    """

    def format(self, record: logging.LogRecord) -> str:
        record.component = _component(record.name)
        return super().format(record)


# Third-party loggers that are too noisy at INFO level
NOISY_LOGGERS = [
    "filelock",
]


def resolve_level(level: str | None = None) -> str:
    """Explicit level, else AGENTWATCH_LOG_LEVEL, else WARNING."""
    if level is None:
        level = os.environ.get("AGENTWATCH_LOG_LEVEL", "WARNING")
    level = level.upper()
    return level if level in LEVELS else "WARNING"


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
) -> None:
    """Configure logging for agentwatch.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses AGENTWATCH_LOG_LEVEL env var or WARNING.
        use_rich: Use Rich handler for colorful console output.
        log_to_file: Also write logs to JSONL files in ~/.agentwatch/logs/.
        retention_days: Days of JSONL logs to keep.
    """
    from agentwatch.config.paths import get_logs_path

    log_level = getattr(logging, resolve_level(level))

    handlers: list[logging.Handler] = []

    if use_rich:
        from rich.console import Console
        from rich.logging import RichHandler

        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    handlers.append(console_handler)

    if log_to_file:
        file_handler = JSONLHandler(get_logs_path(), retention_days=retention_days)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
