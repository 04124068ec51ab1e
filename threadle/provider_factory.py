"""Provider factory for the translation pipeline.

Responsibilities:
- Resolve provider identifiers to concrete LLM provider adapters.
- Keep orchestration independent from concrete provider class construction.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from .config import ProviderRuntimeConfig, ThreadleConfig
from .errors import ConfigurationError
from .llm.anthropic_provider import AnthropicProvider
from .llm.base import HTTPProvider, LLMProvider
from .llm.google_provider import GoogleProvider
from .llm.openai_provider import OpenAIProvider

_PROVIDER_CLASSES: dict[str, type[HTTPProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "google": GoogleProvider,
}


class ProviderFactory:
    """Factory for provider-backed completion clients used by the orchestrator."""

    @staticmethod
    def supported_providers() -> tuple[str, ...]:
        """Return supported provider identifiers in sorted order."""

        return tuple(sorted(_PROVIDER_CLASSES))

    @staticmethod
    def create_provider(
        provider_id: str,
        api_key: str | None,
        model: str | None = None,
        *,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        initial_delay_seconds: float = 1.0,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> LLMProvider:
        """Create a completion provider for a configured provider identifier."""

        provider_class = _PROVIDER_CLASSES.get(provider_id)
        if provider_class is None:
            supported = ", ".join(ProviderFactory.supported_providers())
            raise ConfigurationError(
                f"Unsupported LLM provider `{provider_id}`; supported: {supported}."
            )
        return provider_class(
            api_key,
            model=model,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            initial_delay_seconds=initial_delay_seconds,
            sleeper=sleeper,
        )

    @staticmethod
    def create_from_config(
        config: ThreadleConfig,
        runtime: ProviderRuntimeConfig | None = None,
    ) -> LLMProvider:
        """Create the provider described by resolved runtime settings and config policy."""

        resolved = runtime if runtime is not None else config.resolved_provider_runtime()
        return ProviderFactory.create_provider(
            resolved.provider,
            resolved.api_key,
            resolved.model,
            timeout_seconds=config.provider_timeout_seconds,
            max_retries=config.max_retries,
            initial_delay_seconds=config.retry_initial_delay_seconds,
        )
