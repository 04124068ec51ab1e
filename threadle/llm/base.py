"""Provider contract and shared HTTP plumbing for LLM vendors.

Responsibilities:
- Define the `LLMProvider` protocol every vendor adapter satisfies.
- Send JSON requests with `requests` off the event loop and map transport and
  HTTP failures onto the normalized error taxonomy.
- Wrap every completion in the generic timeout guard and retry policy.

Vendor adapters override payload construction, response parsing, and HTTP error
classification only.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import json
import re
import socket
from typing import Any, Protocol

from loguru import logger
import requests

from ..errors import ConfigurationError
from ..models.datatypes import CompletionOptions, LLMResponse
from .errors import (
    AuthenticationError,
    LLMProviderError,
    MalformedResponseError,
    ProviderTimeoutError,
    RateLimitError,
)
from .retry import DEFAULT_INITIAL_DELAY_SECONDS, DEFAULT_MAX_RETRIES, with_retry
from .timeout import with_timeout

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 1000


class LLMProvider(Protocol):
    """Uniform completion contract shared by all vendor adapters."""

    summary_model: str

    async def complete(
        self, prompt: str, options: CompletionOptions | None = None
    ) -> LLMResponse:
        """Complete one prompt and return normalized content and usage."""

    async def test_connection(self) -> bool:
        """Verify credentials and connectivity with a minimal request."""

    def get_provider_name(self) -> str:
        """Return the provider identifier."""


class HTTPProvider:
    """Shared HTTP settings, error mapping, and resilience wrappers for vendors."""

    provider_name = "unknown"
    display_name = "Provider"
    default_model = ""
    summary_model = ""
    base_url = ""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay_seconds: float = DEFAULT_INITIAL_DELAY_SECONDS,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize provider settings; a missing API key is a configuration error."""

        normalized_key = api_key.strip() if isinstance(api_key, str) else ""
        if not normalized_key:
            raise ConfigurationError(f"{self.display_name} API key is required.")
        self.api_key = normalized_key
        self.model = model or self.default_model
        self.base_url = (base_url or self.base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.initial_delay_seconds = initial_delay_seconds
        self._sleeper = sleeper

    def get_provider_name(self) -> str:
        """Return the provider identifier."""

        return self.provider_name

    async def complete(
        self, prompt: str, options: CompletionOptions | None = None
    ) -> LLMResponse:
        """Complete a prompt under the timeout guard and retry policy."""

        resolved = options or CompletionOptions()
        model = resolved.model or self.model
        temperature = (
            resolved.temperature if resolved.temperature is not None else DEFAULT_TEMPERATURE
        )
        max_tokens = resolved.max_tokens or DEFAULT_MAX_TOKENS

        def _attempt() -> Awaitable[LLMResponse]:
            return with_timeout(
                self._request_completion(prompt, model, temperature, max_tokens),
                self.timeout_seconds,
                self.provider_name,
            )

        return await with_retry(
            _attempt,
            provider=self.provider_name,
            max_retries=self.max_retries,
            initial_delay_seconds=self.initial_delay_seconds,
            sleeper=self._sleeper,
        )

    async def test_connection(self) -> bool:
        """Issue one minimal completion without retries and report success."""

        try:
            await with_timeout(
                self._request_completion("test", self.model, DEFAULT_TEMPERATURE, 5),
                self.timeout_seconds,
                self.provider_name,
            )
        except LLMProviderError as exc:
            logger.error(
                "{} connection test failed: kind={} status={}",
                self.display_name,
                exc.failure_kind,
                exc.status_code,
            )
            raise
        return True

    async def _request_completion(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        """Send one completion request in a worker thread and parse the response."""

        endpoint_path = self._endpoint_path(model)
        payload = self._build_payload(prompt, model, temperature, max_tokens)
        raw_payload = await asyncio.to_thread(
            self._execute_json_post, endpoint_path, payload
        )
        try:
            decoded = json.loads(raw_payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedResponseError(
                f"{self.display_name} returned invalid JSON payload.",
                provider=self.provider_name,
            ) from exc
        if not isinstance(decoded, dict):
            raise MalformedResponseError(
                f"{self.display_name} response root must be a JSON object.",
                provider=self.provider_name,
            )
        return self._parse_response(decoded, prompt, model)

    def _endpoint_path(self, model: str) -> str:
        """Return the vendor endpoint path for a completion request."""

        raise NotImplementedError

    def _headers(self) -> dict[str, str]:
        """Return vendor request headers including credentials."""

        raise NotImplementedError

    def _build_payload(
        self, prompt: str, model: str, temperature: float, max_tokens: int
    ) -> dict[str, Any]:
        """Return the vendor JSON request body."""

        raise NotImplementedError

    def _parse_response(self, payload: dict[str, Any], prompt: str, model: str) -> LLMResponse:
        """Convert a vendor JSON response into a normalized response."""

        raise NotImplementedError

    def _execute_json_post(self, endpoint_path: str, payload: dict[str, Any]) -> bytes:
        """Execute a JSON POST request and map failures consistently."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {"Content-Type": "application/json", **self._headers()}
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except (requests.Timeout, socket.timeout, TimeoutError) as exc:
            raise ProviderTimeoutError(self.provider_name, self.timeout_seconds) from exc
        except requests.RequestException as exc:
            raise LLMProviderError(
                f"{self.display_name} request transport error: "
                f"{self._short_message(str(exc))}",
                provider=self.provider_name,
                failure_kind="transport",
            ) from exc

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        try:
            return bytes(response.content).decode("utf-8", errors="replace").strip()
        except (TypeError, ValueError):
            return ""

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\b(?:sk|sk-ant|AIza)[-_A-Za-z0-9]{8,}\b", "[redacted-key]", text)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider message and optional provider error code."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body)), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                for code_key in ("code", "type", "status"):
                    code_value = error_payload.get(code_key)
                    if isinstance(code_value, str) and code_value.strip():
                        provider_code = code_value.strip()
                        break
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        if message is None:
            message = body

        return cls._short_message(cls._redact_sensitive_tokens(message)), provider_code

    @staticmethod
    def _token_count(value: Any, fallback: int = 0) -> int:
        """Read a usage counter, using `fallback` when it is absent, zero, or non-numeric."""

        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return fallback
        try:
            count = int(value)
        except (ValueError, OverflowError):
            return fallback
        return count or fallback

    @staticmethod
    def _parse_retry_after(exc: requests.HTTPError) -> int | None:
        """Read an integer `Retry-After` header when the vendor supplies one."""

        response = exc.response
        headers = getattr(response, "headers", None) or {}
        raw_value = headers.get("retry-after") or headers.get("Retry-After")
        if raw_value is None:
            return None
        try:
            return int(str(raw_value).strip())
        except ValueError:
            return None

    def _classify_http_failure(
        self,
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify an HTTP failure as `rate_limit`, `authentication`, or `provider`."""

        _ = provider_message, provider_code
        if status_code == 429:
            return "rate_limit"
        if status_code == 401:
            return "authentication"
        return "provider"

    def _http_error_to_provider_error(self, exc: requests.HTTPError) -> LLMProviderError:
        """Convert HTTP errors into normalized provider exceptions."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = self._decode_error_body(exc)
        provider_message, provider_code = self._extract_provider_message(body)
        failure_kind = self._classify_http_failure(status_code, provider_message, provider_code)

        if failure_kind == "rate_limit":
            return RateLimitError(self.provider_name, retry_after=self._parse_retry_after(exc))
        if failure_kind == "authentication":
            return AuthenticationError(self.provider_name, status_code=status_code)

        scope = "server" if status_code >= 500 else "client"
        headline = f"{self.display_name} {scope} error (HTTP {status_code})"
        detail = f"{headline}: {provider_message}" if provider_message else f"{headline}."
        return LLMProviderError(
            detail,
            provider=self.provider_name,
            status_code=status_code,
            provider_code=provider_code,
        )
