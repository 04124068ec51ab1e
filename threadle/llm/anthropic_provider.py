"""Anthropic messages API provider adapter."""

from __future__ import annotations

from typing import Any

from ..models.datatypes import LLMResponse, TokenUsage
from .base import HTTPProvider
from .errors import MalformedResponseError

ANTHROPIC_API_VERSION = "2023-06-01"


class AnthropicProvider(HTTPProvider):
    """Requests-based adapter for Anthropic `/messages`."""

    provider_name = "anthropic"
    display_name = "Anthropic"
    default_model = "claude-3-5-sonnet-20241022"
    summary_model = "claude-3-haiku-20240307"
    base_url = "https://api.anthropic.com/v1"

    def _endpoint_path(self, model: str) -> str:
        """Return the messages endpoint path."""

        return "/messages"

    def _headers(self) -> dict[str, str]:
        """Return API-key and API-version headers."""

        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
        }

    def _build_payload(
        self, prompt: str, model: str, temperature: float, max_tokens: int
    ) -> dict[str, Any]:
        """Build a single-user-message messages body."""

        return {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _parse_response(self, payload: dict[str, Any], prompt: str, model: str) -> LLMResponse:
        """Join text content blocks and map input/output token counts."""

        blocks = payload.get("content")
        if not isinstance(blocks, list):
            raise MalformedResponseError(
                "Anthropic response missing `content` block list.",
                provider=self.provider_name,
            )
        content = "\n".join(
            block["text"]
            for block in blocks
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        )

        usage_payload = payload.get("usage")
        usage_payload = usage_payload if isinstance(usage_payload, dict) else {}
        input_tokens = self._token_count(usage_payload.get("input_tokens"))
        output_tokens = self._token_count(usage_payload.get("output_tokens"))
        reported_model = payload.get("model")
        return LLMResponse(
            content=content,
            usage=TokenUsage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            provider=self.provider_name,
            model=reported_model if isinstance(reported_model, str) and reported_model else model,
        )
