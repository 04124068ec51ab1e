"""Shared typed data models for Threadle.

This package contains dataclasses exchanged between cache, provider, and
translation modules to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    AI_DISCLAIMER,
    SUPPORTED_LANGUAGES,
    TRANSLATION_STYLES,
    CacheEntry,
    CacheStats,
    CompletionOptions,
    ConversationMessage,
    LLMResponse,
    Redaction,
    RedactionResult,
    RequesterProfile,
    TokenUsage,
    TranslationRecord,
    TranslationResult,
)

__all__ = [
    "AI_DISCLAIMER",
    "SUPPORTED_LANGUAGES",
    "TRANSLATION_STYLES",
    "CacheEntry",
    "CacheStats",
    "CompletionOptions",
    "ConversationMessage",
    "LLMResponse",
    "Redaction",
    "RedactionResult",
    "RequesterProfile",
    "TokenUsage",
    "TranslationRecord",
    "TranslationResult",
]
