"""Normalized provider error taxonomy.

Every vendor adapter maps its raw failure shape onto these types so retry
policy and orchestration never branch on vendor-specific payloads.
"""

from __future__ import annotations


class LLMProviderError(RuntimeError):
    """Raised when a provider request fails or returns malformed output."""

    failure_kind = "provider"

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        provider_code: str | None = None,
        failure_kind: str | None = None,
    ) -> None:
        """Initialize provider error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.provider_code = provider_code
        if failure_kind is not None:
            self.failure_kind = failure_kind


class RateLimitError(LLMProviderError):
    """Provider rejected the request with a rate limit (HTTP 429)."""

    failure_kind = "rate_limit"

    def __init__(
        self,
        provider: str,
        *,
        retry_after: int | None = None,
        detail: str | None = None,
    ) -> None:
        suffix = f". Retry after {retry_after}s" if retry_after else ""
        message = detail or f"Rate limit exceeded for {provider}{suffix}"
        super().__init__(message, provider=provider, status_code=429)
        self.retry_after = retry_after


class AuthenticationError(LLMProviderError):
    """Provider rejected the configured API key."""

    failure_kind = "authentication"

    def __init__(self, provider: str, *, status_code: int = 401) -> None:
        super().__init__(
            f"Invalid API key for {provider}",
            provider=provider,
            status_code=status_code,
        )


class ProviderTimeoutError(LLMProviderError):
    """Provider call did not settle before the timeout guard expired."""

    failure_kind = "timeout"

    def __init__(self, provider: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Request to {provider} timed out after {timeout_seconds:g}s",
            provider=provider,
        )
        self.timeout_seconds = timeout_seconds


class MalformedResponseError(LLMProviderError):
    """Provider answered successfully but the body could not be interpreted."""

    failure_kind = "malformed_response"

    def __init__(self, message: str, *, provider: str) -> None:
        super().__init__(message, provider=provider)
