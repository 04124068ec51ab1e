"""Google Gemini `generateContent` provider adapter."""

from __future__ import annotations

import math
from typing import Any

from ..models.datatypes import LLMResponse, TokenUsage
from .base import HTTPProvider
from .errors import MalformedResponseError

_CHARS_PER_TOKEN = 4


class GoogleProvider(HTTPProvider):
    """Requests-based adapter for the Gemini REST API."""

    provider_name = "google"
    display_name = "Google"
    default_model = "gemini-1.5-pro"
    summary_model = "gemini-1.5-flash"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def _endpoint_path(self, model: str) -> str:
        """Return the model-scoped `generateContent` endpoint path."""

        return f"/models/{model}:generateContent"

    def _headers(self) -> dict[str, str]:
        """Return the API-key header."""

        return {"x-goog-api-key": self.api_key}

    def _build_payload(
        self, prompt: str, model: str, temperature: float, max_tokens: int
    ) -> dict[str, Any]:
        """Build a single-turn contents body with generation settings."""

        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

    def _parse_response(self, payload: dict[str, Any], prompt: str, model: str) -> LLMResponse:
        """Join candidate text parts; estimate usage when metadata is absent."""

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise MalformedResponseError(
                "Google response missing non-empty `candidates` list.",
                provider=self.provider_name,
            )
        candidate_content = (
            candidates[0].get("content") if isinstance(candidates[0], dict) else None
        )
        parts = candidate_content.get("parts") if isinstance(candidate_content, dict) else None
        if not isinstance(parts, list):
            raise MalformedResponseError(
                "Google response missing `candidates[0].content.parts` list.",
                provider=self.provider_name,
            )
        content = "".join(
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )

        # usageMetadata is not always present.
        estimated_prompt = math.ceil(len(prompt) / _CHARS_PER_TOKEN)
        estimated_completion = math.ceil(len(content) / _CHARS_PER_TOKEN)
        metadata = payload.get("usageMetadata")
        metadata = metadata if isinstance(metadata, dict) else {}
        prompt_tokens = self._token_count(metadata.get("promptTokenCount"), estimated_prompt)
        completion_tokens = self._token_count(
            metadata.get("candidatesTokenCount"), estimated_completion
        )
        total_tokens = self._token_count(
            metadata.get("totalTokenCount"), prompt_tokens + completion_tokens
        )
        return LLMResponse(
            content=content,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=total_tokens,
            ),
            provider=self.provider_name,
            model=model,
        )

    def _classify_http_failure(
        self,
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Map Google status strings alongside HTTP codes."""

        code = (provider_code or "").upper()
        if status_code == 429 or code == "RESOURCE_EXHAUSTED":
            return "rate_limit"
        if status_code in {401, 403} or code in {"PERMISSION_DENIED", "UNAUTHENTICATED"}:
            return "authentication"
        return "provider"
