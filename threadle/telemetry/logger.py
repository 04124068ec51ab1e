"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Keep audit events free of sensitive payloads (no raw PII, prompts, or keys).
"""

from __future__ import annotations

from collections import Counter
import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> None:
    """Replace default loguru handlers with one plain-message sink."""

    _loguru_logger.remove()
    _loguru_logger.add(sink or sys.stderr, format="{message}", level=level, colorize=False)


class RunLogger:
    """Emit deterministic phase logs for translation pipeline activity."""

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_stage_start(self, stage: str) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)

    def log_cache_event(self, event: str, **context: object) -> None:
        """Emit a cache hit/miss/store event."""

        self._emit("INFO", event, "cache", **context)

    def log_redactions(self, redaction_types: list[str]) -> None:
        """Emit a redaction audit event with count and per-type totals only."""

        counts = Counter(redaction_types)
        types = "/".join(f"{name}:{counts[name]}" for name in sorted(counts))
        self._emit("INFO", "audit", "redact", count=len(redaction_types), types=types)
