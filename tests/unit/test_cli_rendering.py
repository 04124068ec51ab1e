"""Unit tests for CLI output and error rendering helpers."""

from __future__ import annotations

import pytest
import typer

from threadle.cli_rendering import (
    echo_history,
    echo_styles,
    echo_translation_result,
    exit_with_command_error,
)
from threadle.errors import ConfigurationError, PipelineStageError
from threadle.llm.errors import (
    AuthenticationError,
    LLMProviderError,
    MalformedResponseError,
    ProviderTimeoutError,
    RateLimitError,
)
from threadle.models.datatypes import TranslationRecord, TranslationResult


def test_exit_with_command_error_renders_stage_error_with_hint(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print stage diagnostics and hint before exiting with code 1."""

    error = PipelineStageError(
        stage="input",
        detail="Conversation file not found: `missing.json`.",
        hint="Pass an existing conversation JSON file path.",
    )

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("explain", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "explain failed at stage `input`" in captured.err
    assert "Hint: Pass an existing conversation JSON file path." in captured.err


@pytest.mark.parametrize(
    ("error", "hint_fragment"),
    [
        (AuthenticationError("openai"), "threadle credentials --set-api-key"),
        (RateLimitError("anthropic"), "rate limiting"),
        (ProviderTimeoutError("google", 30), "provider_timeout_seconds"),
        (
            LLMProviderError("reset", provider="openai", failure_kind="transport"),
            "network connectivity",
        ),
        (LLMProviderError("HTTP 500", provider="openai", status_code=500), "status page"),
        (
            MalformedResponseError("OpenAI response missing choices.", provider="openai"),
            "unexpected response body",
        ),
    ],
)
def test_exit_with_command_error_maps_provider_failures_to_hints(
    capsys: pytest.CaptureFixture[str],
    error: LLMProviderError,
    hint_fragment: str,
) -> None:
    """Provider failures should render their kind and an actionable hint."""

    with pytest.raises(typer.Exit):
        exit_with_command_error("explain", error)

    captured = capsys.readouterr()
    assert f"kind={error.failure_kind}" in captured.err
    assert hint_fragment in captured.err


def test_exit_with_command_error_renders_configuration_and_fallback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Configuration errors and unexpected errors should print concise messages."""

    with pytest.raises(typer.Exit):
        exit_with_command_error("explain", ConfigurationError("OpenAI API key is required."))
    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("history", RuntimeError("unexpected failure"))

    captured = capsys.readouterr()
    assert "explain failed: invalid configuration: OpenAI API key is required." in captured.err
    assert "history failed: unexpected failure" in captured.err
    assert exc_info.value.exit_code == 1


def test_echo_helpers_render_results_styles_and_history(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Echo helpers should print deterministic result, style, and history rows."""

    echo_translation_result(
        TranslationResult(content="Body", token_usage=12, provider="openai", model="m")
    )
    echo_styles(("ELI5",), {"QA": "engineering-backend", "Design": "design"})
    echo_history([])
    echo_history(
        [
            TranslationRecord(
                conversation_id=None,
                requested_by_user_id=None,
                original_messages="[]",
                translated_content="Body",
                target_role="QA",
                language="English",
                provider="openai",
                model="m",
                token_usage=12,
                created_at="2026-01-01T00:00:00+00:00",
            )
        ]
    )

    output = capsys.readouterr().out
    assert "Body\n\nProvider: openai\nModel: m\nTokens: 12\n" in output
    assert "  Design -> design\n  QA -> engineering-backend\n" in output
    assert "No translations recorded." in output
    assert (
        "2026-01-01T00:00:00+00:00 provider=openai model=m role=QA language=English "
        "tokens=12 conversation=-"
    ) in output
