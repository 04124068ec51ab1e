"""LLM-facing abstractions for explanation and summarization calls.

This package defines the provider contract, vendor adapters, the normalized
error taxonomy, and the generic timeout and retry wrappers.
"""

from .anthropic_provider import AnthropicProvider
from .base import HTTPProvider, LLMProvider
from .errors import (
    AuthenticationError,
    LLMProviderError,
    MalformedResponseError,
    ProviderTimeoutError,
    RateLimitError,
)
from .google_provider import GoogleProvider
from .openai_provider import OpenAIProvider
from .retry import is_retryable_error, with_retry
from .timeout import with_timeout

__all__ = [
    "AnthropicProvider",
    "AuthenticationError",
    "GoogleProvider",
    "HTTPProvider",
    "LLMProvider",
    "LLMProviderError",
    "MalformedResponseError",
    "OpenAIProvider",
    "ProviderTimeoutError",
    "RateLimitError",
    "is_retryable_error",
    "with_retry",
    "with_timeout",
]
