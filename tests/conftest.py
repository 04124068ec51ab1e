"""Shared pytest fixtures for the full Threadle test suite."""

from __future__ import annotations

import pytest

from threadle.models.datatypes import ConversationMessage, RequesterProfile


@pytest.fixture
def backend_profile() -> RequesterProfile:
    """Provide a backend engineer requester profile."""

    return RequesterProfile(role="Engineering-Backend", language="English")


@pytest.fixture
def short_conversation() -> list[ConversationMessage]:
    """Provide a small conversation well under the token budget."""

    return [
        ConversationMessage(author="alice", text="We should move the queue to Redis streams."),
        ConversationMessage(author="bob", text="Agreed, I will draft the migration plan."),
    ]
