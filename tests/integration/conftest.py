"""Integration-test fixtures for deterministic provider and credential behavior."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pytest

from tests.fakes import MockRequestsResponse


class InMemoryCredentialStore:
    """Simple in-memory credential store used for CLI tests."""

    def __init__(self, initial_api_key: str | None = None) -> None:
        """Initialize the store with an optional pre-seeded API key."""

        self._api_key = initial_api_key

    def is_available(self) -> bool:
        """Return availability flag expected by the CLI status command."""

        return True

    def get_api_key(self) -> str | None:
        """Return currently stored API key value."""

        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key value."""

        self._api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        """Clear API key and return whether one existed."""

        existed = self._api_key is not None
        self._api_key = None
        return existed


class ProviderHttpStub:
    """Stands in for `requests.post` and records every provider request."""

    def __init__(self) -> None:
        """Start with a successful OpenAI-style chat-completions response."""

        self.calls: list[dict[str, Any]] = []
        self.status_code = 200
        self.payload: object = {
            "model": "gpt-4.1-mini",
            "choices": [{"message": {"content": "integration-mocked-explanation"}}],
            "usage": {"prompt_tokens": 30, "completion_tokens": 12, "total_tokens": 42},
        }

    def fail_with(self, status_code: int, message: str) -> None:
        """Make every later request fail with a vendor-style error body."""

        self.status_code = status_code
        self.payload = {"error": {"message": message}}

    def __call__(self, url: str, **kwargs: Any) -> MockRequestsResponse:
        self.calls.append({"url": url, **kwargs})
        return MockRequestsResponse(payload=self.payload, status_code=self.status_code)


@pytest.fixture(autouse=True)
def provider_http(monkeypatch: pytest.MonkeyPatch) -> ProviderHttpStub:
    """Mock provider HTTP calls in integration tests to avoid network/key requirements."""

    stub = ProviderHttpStub()
    monkeypatch.setattr("threadle.llm.base.requests.post", stub)
    return stub


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Replace OS keyring access with an empty in-memory store."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("threadle.cli.create_credential_store", lambda: store)
    return store


@pytest.fixture(autouse=True)
def _isolate_threadle_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ambient `THREADLE_*` variables so defaults stay deterministic."""

    for key in [name for name in list(os.environ) if name.startswith("THREADLE_")]:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def conversation_file(tmp_path: Path) -> Path:
    """Write a short engineering conversation JSON file."""

    path = tmp_path / "conversation.json"
    path.write_text(
        json.dumps(
            [
                {"author": "alice", "text": "We should move the queue to Redis streams."},
                {"author": "bob", "text": "Agreed, ping bob@example.com for the rollout plan."},
            ]
        ),
        encoding="utf-8",
    )
    return path
