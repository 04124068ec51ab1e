"""OpenAI chat-completions provider adapter."""

from __future__ import annotations

from typing import Any

from ..models.datatypes import LLMResponse, TokenUsage
from .base import HTTPProvider
from .errors import MalformedResponseError


class OpenAIProvider(HTTPProvider):
    """Requests-based adapter for OpenAI `/chat/completions`."""

    provider_name = "openai"
    display_name = "OpenAI"
    default_model = "gpt-4.1-mini"
    summary_model = "gpt-3.5-turbo"
    base_url = "https://api.openai.com/v1"

    def _endpoint_path(self, model: str) -> str:
        """Return the chat-completions endpoint path."""

        return "/chat/completions"

    def _headers(self) -> dict[str, str]:
        """Return bearer-token authentication headers."""

        return {"Authorization": f"Bearer {self.api_key}"}

    def _build_payload(
        self, prompt: str, model: str, temperature: float, max_tokens: int
    ) -> dict[str, Any]:
        """Build a single-user-message chat-completions body."""

        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    def _parse_response(self, payload: dict[str, Any], prompt: str, model: str) -> LLMResponse:
        """Extract first assistant message text and usage from a chat-completions payload."""

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise MalformedResponseError(
                "OpenAI response missing non-empty `choices` list.",
                provider=self.provider_name,
            )
        first_choice = choices[0]
        message = first_choice.get("message") if isinstance(first_choice, dict) else None
        if not isinstance(message, dict):
            raise MalformedResponseError(
                "OpenAI response missing `choices[0].message` object.",
                provider=self.provider_name,
            )
        content = self._message_content_to_text(message.get("content"))

        usage_payload = payload.get("usage")
        usage_payload = usage_payload if isinstance(usage_payload, dict) else {}
        usage = TokenUsage(
            prompt_tokens=self._token_count(usage_payload.get("prompt_tokens")),
            completion_tokens=self._token_count(usage_payload.get("completion_tokens")),
            total_tokens=self._token_count(usage_payload.get("total_tokens")),
        )
        reported_model = payload.get("model")
        return LLMResponse(
            content=content,
            usage=usage,
            provider=self.provider_name,
            model=reported_model if isinstance(reported_model, str) and reported_model else model,
        )

    @staticmethod
    def _message_content_to_text(content: Any) -> str:
        """Convert OpenAI message content variants into a plain text string."""

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if not isinstance(item, dict):
                    continue
                if item.get("type") == "text" and isinstance(item.get("text"), str):
                    parts.append(item["text"])
            return "".join(parts)
        return ""
