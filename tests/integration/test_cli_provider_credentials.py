"""Integration tests for CLI provider/model and secure credential flows."""

from __future__ import annotations

from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from threadle.cli import app


def test_credentials_command_reports_status(credential_store) -> None:
    """Credentials without flags should report storage availability and key presence."""

    runner = CliRunner()
    result = runner.invoke(app, ["credentials"])

    assert result.exit_code == 0
    assert "Secure credential storage: available" in result.output
    assert "Stored LLM API key: not set" in result.output

    credential_store.set_api_key("stored-key")
    result = runner.invoke(app, ["credentials"])
    assert "Stored LLM API key: present" in result.output
    assert "stored-key" not in result.output


def test_credentials_command_sets_and_clears_api_key(credential_store) -> None:
    """`--set-api-key` should store the hidden prompt value and `--clear-api-key` drop it."""

    runner = CliRunner()
    result = runner.invoke(app, ["credentials", "--set-api-key"], input="  new-secret  \n")

    assert result.exit_code == 0, result.output
    assert "API key stored in secure credential storage." in result.output
    assert credential_store.get_api_key() == "new-secret"

    result = runner.invoke(app, ["credentials", "--clear-api-key"])
    assert result.exit_code == 0
    assert "Stored API key cleared from secure credential storage." in result.output
    assert credential_store.get_api_key() is None

    result = runner.invoke(app, ["credentials", "--clear-api-key"])
    assert "No stored API key found in secure credential storage." in result.output


def test_credentials_command_rejects_conflicting_flags() -> None:
    """Setting and clearing in one invocation should fail at the credentials stage."""

    runner = CliRunner()
    result = runner.invoke(app, ["credentials", "--set-api-key", "--clear-api-key"])

    assert result.exit_code == 1
    assert "credentials failed at stage `credentials`" in result.output
    assert "cannot be used together" in result.output


def test_explain_command_stores_cli_api_key_by_default(
    provider_http, credential_store, conversation_file: Path
) -> None:
    """A CLI API key should be persisted unless `--no-store-api-key` is passed."""

    runner = CliRunner()
    result = runner.invoke(
        app, ["explain", str(conversation_file), "--api-key", "cli-entered-key"]
    )

    assert result.exit_code == 0, result.output
    assert credential_store.get_api_key() == "cli-entered-key"
    assert provider_http.calls[0]["headers"]["Authorization"] == "Bearer cli-entered-key"


def test_explain_command_prefers_cli_key_over_stored_and_env_keys(
    monkeypatch: MonkeyPatch, provider_http, credential_store, conversation_file: Path
) -> None:
    """Runtime key precedence should be CLI, then secure storage, then environment."""

    monkeypatch.setenv("THREADLE_LLM_API_KEY", "env-key")
    credential_store.set_api_key("stored-key")
    runner = CliRunner()

    result = runner.invoke(app, ["explain", str(conversation_file)])
    assert result.exit_code == 0, result.output
    assert provider_http.calls[-1]["headers"]["Authorization"] == "Bearer stored-key"

    result = runner.invoke(
        app,
        ["explain", str(conversation_file), "--api-key", "cli-key", "--no-store-api-key"],
    )
    assert result.exit_code == 0, result.output
    assert provider_http.calls[-1]["headers"]["Authorization"] == "Bearer cli-key"
    assert credential_store.get_api_key() == "stored-key"


def test_explain_command_uses_env_provider_and_model(
    monkeypatch: MonkeyPatch, provider_http, conversation_file: Path
) -> None:
    """Environment runtime values should select the vendor when no CLI override exists."""

    monkeypatch.setenv("THREADLE_LLM_PROVIDER", "google")
    monkeypatch.setenv("THREADLE_LLM_MODEL", "gemini-custom")
    monkeypatch.setenv("THREADLE_LLM_API_KEY", "AIza-env-key")
    provider_http.payload = {
        "candidates": [{"content": {"parts": [{"text": "google-mocked-explanation"}]}}],
        "usageMetadata": {
            "promptTokenCount": 9,
            "candidatesTokenCount": 4,
            "totalTokenCount": 13,
        },
    }
    runner = CliRunner()

    result = runner.invoke(app, ["explain", str(conversation_file)])

    assert result.exit_code == 0, result.output
    assert "google-mocked-explanation" in result.output
    assert "Provider: google" in result.output
    assert "Model: gemini-custom" in result.output
    assert "gemini-custom:generateContent" in provider_http.calls[0]["url"]


def test_test_connection_command_reports_success(provider_http) -> None:
    """Test-connection should send one minimal request and print the provider id."""

    runner = CliRunner()
    result = runner.invoke(
        app, ["test-connection", "--provider", "openai", "--api-key", "sk-test-key"]
    )

    assert result.exit_code == 0, result.output
    assert "Connection OK: provider=openai" in result.output
    assert len(provider_http.calls) == 1
    assert provider_http.calls[0]["json"]["max_tokens"] == 5


def test_test_connection_command_does_not_store_key_by_default(credential_store) -> None:
    """Test-connection should leave secure storage untouched unless asked to store."""

    runner = CliRunner()
    result = runner.invoke(app, ["test-connection", "--api-key", "sk-one-off-key"])

    assert result.exit_code == 0, result.output
    assert credential_store.get_api_key() is None


def test_test_connection_command_prompts_for_hidden_api_key(
    provider_http, credential_store
) -> None:
    """`--prompt-api-key` should read the key from hidden input and store it on request."""

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["test-connection", "--prompt-api-key", "--store-api-key"],
        input="prompted-key\n",
    )

    assert result.exit_code == 0, result.output
    assert provider_http.calls[0]["headers"]["Authorization"] == "Bearer prompted-key"
    assert credential_store.get_api_key() == "prompted-key"
