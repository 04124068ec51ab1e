"""PII detection and masking for conversation text.

Responsibilities:
- Mask emails, phone numbers, SSNs, credit cards, and API tokens in a fixed order.
- Record each redaction with its offset in the original input text.
- Emit audit logs with redaction counts and types only.

Pattern classes run sequentially on progressively redacted text. Masked spans
are tracked as ranges of the original text, so later patterns that overlap an
earlier placeholder absorb it instead of corrupting the output.
"""

from __future__ import annotations

from bisect import insort
import re

from ..models.datatypes import Redaction, RedactionResult, RedactionType
from ..telemetry.logger import RunLogger

REDACTION_PLACEHOLDER = "[REDACTED]"

_EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b")
_SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
_CREDIT_CARD_PATTERN = re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b")
_TOKEN_PATTERN = re.compile(
    r"\b(?:sk|pk|api|token|key)[-_]?(?:live|test)?[-_]?[A-Za-z0-9]{20,}\b",
    re.IGNORECASE,
)

# Token patterns are broad and must run last.
_PATTERN_ORDER: tuple[tuple[RedactionType, re.Pattern[str]], ...] = (
    ("email", _EMAIL_PATTERN),
    ("phone", _PHONE_PATTERN),
    ("ssn", _SSN_PATTERN),
    ("credit_card", _CREDIT_CARD_PATTERN),
    ("token", _TOKEN_PATTERN),
)


class _MaskedText:
    """Original text plus sorted, non-overlapping masked ranges."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.ranges: list[tuple[int, int]] = []

    def render(self) -> str:
        """Return the source text with every masked range replaced by the placeholder."""

        parts: list[str] = []
        cursor = 0
        for start, end in self.ranges:
            parts.append(self.source[cursor:start])
            parts.append(REDACTION_PLACEHOLDER)
            cursor = end
        parts.append(self.source[cursor:])
        return "".join(parts)

    def to_source_offset(self, position: int, *, is_end: bool) -> int:
        """Map a rendered-text offset to the corresponding source offset.

        Offsets that fall strictly inside a placeholder snap to the masked
        range boundary so the containing range is fully covered.
        """

        shift = 0
        rendered_cursor = 0
        source_cursor = 0
        for start, end in self.ranges:
            rendered_start = rendered_cursor + (start - source_cursor)
            rendered_end = rendered_start + len(REDACTION_PLACEHOLDER)
            if position <= rendered_start:
                break
            if position < rendered_end:
                return end if is_end else start
            shift += (end - start) - len(REDACTION_PLACEHOLDER)
            rendered_cursor = rendered_end
            source_cursor = end
        return position + shift

    def mask(self, start: int, end: int) -> None:
        """Mask a source range, absorbing any existing ranges it overlaps."""

        kept: list[tuple[int, int]] = []
        for range_start, range_end in self.ranges:
            if range_end <= start or range_start >= end:
                kept.append((range_start, range_end))
                continue
            start = min(start, range_start)
            end = max(end, range_end)
        self.ranges = kept
        insort(self.ranges, (start, end))


class PIIRedactor:
    """Detect and mask sensitive substrings before text leaves the process."""

    def __init__(self, run_logger: RunLogger | None = None) -> None:
        """Initialize the redactor with an optional audit logger."""

        self._run_logger = run_logger if run_logger is not None else RunLogger()

    def redact(self, text: str) -> RedactionResult:
        """Mask all supported PII classes and return redacted text with audit records."""

        masked = _MaskedText(text)
        redactions: list[Redaction] = []
        for redaction_type, pattern in _PATTERN_ORDER:
            self._redact_pattern(masked, pattern, redaction_type, redactions)
        return RedactionResult(text=masked.render(), redactions=tuple(redactions))

    @staticmethod
    def _redact_pattern(
        masked: _MaskedText,
        pattern: re.Pattern[str],
        redaction_type: RedactionType,
        redactions: list[Redaction],
    ) -> None:
        """Apply one pattern class to the current rendered text."""

        rendered = masked.render()
        spans: list[tuple[int, int]] = []
        for match in pattern.finditer(rendered):
            start = masked.to_source_offset(match.start(), is_end=False)
            end = masked.to_source_offset(match.end(), is_end=True)
            spans.append((start, end))
            redactions.append(
                Redaction(
                    type=redaction_type,
                    original=masked.source[start:end],
                    position=start,
                )
            )
        # Offsets above were computed against the pre-pass layout.
        for start, end in spans:
            masked.mask(start, end)

    def log_redactions(self, redactions: tuple[Redaction, ...] | list[Redaction]) -> None:
        """Emit an audit event with redaction count and types, never raw values."""

        if not redactions:
            return
        self._run_logger.log_redactions([redaction.type for redaction in redactions])
