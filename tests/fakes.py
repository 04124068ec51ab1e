"""Deterministic test doubles shared across the Threadle test suite."""

from __future__ import annotations

import asyncio
import json

import requests

from threadle.llm.errors import LLMProviderError
from threadle.models.datatypes import (
    CompletionOptions,
    ConversationMessage,
    LLMResponse,
    RequesterProfile,
    TokenUsage,
    TranslationRecord,
)


class FakeProvider:
    """Scripted provider that records prompts and options for each call."""

    summary_model = "fake-summary-model"

    def __init__(
        self,
        responses: list[str] | None = None,
        *,
        errors: list[Exception] | None = None,
        total_tokens: int = 42,
        delay_seconds: float = 0.0,
    ) -> None:
        """Initialize with queued response texts and optional queued errors."""

        self._responses = list(responses or ["Plain explanation."])
        self._errors = list(errors or [])
        self.total_tokens = total_tokens
        self.delay_seconds = delay_seconds
        self.prompts: list[str] = []
        self.options: list[CompletionOptions | None] = []

    @property
    def call_count(self) -> int:
        """Return how many completions were requested."""

        return len(self.prompts)

    async def complete(
        self, prompt: str, options: CompletionOptions | None = None
    ) -> LLMResponse:
        """Return the next queued response, raising a queued error first when present."""

        self.prompts.append(prompt)
        self.options.append(options)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self._errors:
            raise self._errors.pop(0)
        content = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        return LLMResponse(
            content=content,
            usage=TokenUsage(total_tokens=self.total_tokens),
            provider="fake",
            model="fake-model",
        )

    async def test_connection(self) -> bool:
        """Report a healthy connection."""

        return True

    def get_provider_name(self) -> str:
        """Return the fake provider identifier."""

        return "fake"


class RecordingRecorder:
    """In-memory translation recorder."""

    def __init__(self, error: Exception | None = None) -> None:
        """Initialize record storage and an optional persistence failure."""

        self.records: list[TranslationRecord] = []
        self._error = error

    async def record(self, record: TranslationRecord) -> None:
        """Store the record or raise the configured failure."""

        if self._error is not None:
            raise self._error
        self.records.append(record)


class StaticDirectory:
    """Conversation directory backed by dictionaries."""

    def __init__(
        self,
        profiles: dict[str, RequesterProfile],
        conversations: dict[str, list[ConversationMessage]],
    ) -> None:
        """Initialize lookup tables."""

        self.profiles = profiles
        self.conversations = conversations

    async def get_profile(self, user_id: str) -> RequesterProfile | None:
        """Return the stored profile for a user."""

        return self.profiles.get(user_id)

    async def get_messages(self, conversation_id: str) -> list[ConversationMessage]:
        """Return stored messages for a conversation."""

        return list(self.conversations.get(conversation_id, []))


class MockRequestsResponse:
    """Minimal requests response mock used by provider adapter tests."""

    def __init__(
        self,
        *,
        payload: object,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize response with a JSON-serializable payload (or raw bytes)."""

        self.content = (
            payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        )
        self.status_code = status_code
        self.headers = headers or {}

    def raise_for_status(self) -> None:
        """Raise HTTP error when status code indicates failure."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class RecordingSleeper:
    """Async sleeper that records requested delays without waiting."""

    def __init__(self) -> None:
        """Initialize the delay log."""

        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        """Record one delay."""

        self.delays.append(seconds)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0) -> None:
        """Initialize clock time."""

        self.now = now

    def __call__(self) -> float:
        """Return current fake time."""

        return self.now

    def advance(self, seconds: float) -> None:
        """Move fake time forward."""

        self.now += seconds


def provider_error(status_code: int | None, provider: str = "fake") -> LLMProviderError:
    """Build a generic provider error with an optional HTTP status."""

    return LLMProviderError(f"HTTP {status_code}", provider=provider, status_code=status_code)
