"""Core datatypes shared across Threadle modules.

Responsibilities:
- Represent immutable records exchanged between pipeline components.
- Provide explicit typing for cache payloads, provider responses, and audit records.

Key types:
- `ConversationMessage`, `RequesterProfile`, `TranslationResult`, `TokenUsage`,
  `CompletionOptions`, `LLMResponse`, `Redaction`, `RedactionResult`,
  `CacheEntry`, `CacheStats`, and `TranslationRecord`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


TRANSLATION_STYLES: tuple[str, ...] = (
    "ELI5",
    "Business Summary",
    "Technical Lite",
    "Analogies Only",
)

SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "English",
    "Spanish",
    "French",
    "German",
    "Japanese",
    "Korean",
    "Chinese",
)

AI_DISCLAIMER = "Note: This explanation was AI-generated. Please verify important details."

RedactionType = Literal["email", "phone", "ssn", "credit_card", "token"]


@dataclass(frozen=True, slots=True)
class ConversationMessage:
    """One chat message from a source conversation.

    Attributes:
        author: Display name or identifier of the message author.
        text: Raw message text.
    """

    author: str
    text: str


@dataclass(frozen=True, slots=True)
class RequesterProfile:
    """Profile of the workspace member requesting an explanation.

    Attributes:
        role: Organizational role (for example `Product` or `Engineering-Backend`).
        language: Target language for the explanation.
        custom_instructions: Optional free-form reader instructions.
        preferred_style: Optional preferred translation style label.
    """

    role: str
    language: str
    custom_instructions: str | None = None
    preferred_style: str | None = None


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Provider-reported token usage for one completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True, slots=True)
class CompletionOptions:
    """Per-call completion options; `None` fields fall back to provider defaults."""

    temperature: float | None = None
    max_tokens: int | None = None
    model: str | None = None


@dataclass(frozen=True, slots=True)
class LLMResponse:
    """Normalized completion response shared by all provider adapters."""

    content: str
    usage: TokenUsage
    provider: str
    model: str


@dataclass(frozen=True, slots=True)
class TranslationResult:
    """Final pipeline output, cached and persisted once per cache miss.

    Attributes:
        content: Explanation text including the trailing AI disclaimer.
        token_usage: Total tokens reported by the provider call.
        provider: Provider identifier that produced the content.
        model: Model identifier reported by the provider.
    """

    content: str
    token_usage: int
    provider: str
    model: str


@dataclass(frozen=True, slots=True)
class Redaction:
    """One masked span, recorded for audit logging only.

    Attributes:
        type: Detected PII class.
        original: Masked substring from the input text.
        position: Character offset of the span in the original input text.
    """

    type: RedactionType
    original: str
    position: int


@dataclass(frozen=True, slots=True)
class RedactionResult:
    """Redacted text together with every redaction applied to it."""

    text: str
    redactions: tuple[Redaction, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Cached value with an absolute expiry timestamp in clock seconds."""

    value: Any
    expires_at: float


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of cache hit/miss counters and current entry count."""

    hits: int
    misses: int
    hit_rate: float
    size: int


@dataclass(frozen=True, slots=True)
class TranslationRecord:
    """Append-only persistence record for one non-cached translation.

    Attributes:
        conversation_id: Optional source conversation identifier.
        requested_by_user_id: Optional requesting user identifier.
        original_messages: JSON serialization of the unredacted source messages.
        translated_content: Rendered explanation including disclaimer.
        target_role: Requester role used for prompt selection.
        language: Target language.
        provider: Provider identifier.
        model: Model identifier.
        token_usage: Total provider token usage.
        created_at: ISO-8601 UTC timestamp.
    """

    conversation_id: str | None
    requested_by_user_id: str | None
    original_messages: str
    translated_content: str
    target_role: str
    language: str
    provider: str
    model: str
    token_usage: int
    created_at: str
