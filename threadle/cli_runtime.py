"""CLI runtime resolution helpers.

This module isolates provider/model/API-key source assembly, secure API-key
persistence, and conversation file loading from the command wiring layer.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Protocol

import typer

from .credentials import create_credential_store
from .errors import PipelineStageError
from .models.datatypes import ConversationMessage
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Protocol for secure credential store operations used by CLI runtime resolution."""

    def get_api_key(self) -> str | None:
        """Return currently stored API key, if available."""

    def set_api_key(self, api_key: str) -> None:
        """Persist API key value in secure storage."""


def _set_runtime_cli_value(
    runtime_cli_values: dict[str, str],
    key: str,
    value: str | None,
) -> None:
    """Set a normalized runtime CLI value when user input is present."""

    normalized = normalize_optional_string(value)
    if normalized is not None:
        runtime_cli_values[key] = normalized


def prompt_hidden_api_key(
    label: str = "LLM provider API key (hidden; leave blank to skip)",
) -> str | None:
    """Prompt for an API key with hidden input and return it normalized."""

    return normalize_optional_string(
        typer.prompt(label, default="", hide_input=True, show_default=False)
    )


def resolve_provider_runtime_sources(
    provider: str | None,
    model: str | None,
    api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
) -> tuple[dict[str, str], dict[str, str]]:
    """Resolve CLI and secure runtime source mappings for provider configuration."""

    runtime_cli_values: dict[str, str] = {}
    _set_runtime_cli_value(runtime_cli_values, "llm_provider", provider)
    _set_runtime_cli_value(runtime_cli_values, "llm_model", model)
    _set_runtime_cli_value(runtime_cli_values, "api_key", api_key)

    api_key_entered_in_run = "api_key" in runtime_cli_values
    if prompt_api_key and "api_key" not in runtime_cli_values:
        prompted_api_key = prompt_hidden_api_key()
        if prompted_api_key is not None:
            runtime_cli_values["api_key"] = prompted_api_key
            api_key_entered_in_run = True

    credential_store = credential_store_factory()
    runtime_secure_values: dict[str, str] = {}
    stored_api_key = credential_store.get_api_key()
    if stored_api_key is not None:
        runtime_secure_values["api_key"] = stored_api_key

    if api_key_entered_in_run and store_api_key:
        try:
            credential_store.set_api_key(runtime_cli_values["api_key"])
            typer.echo("Stored API key in secure credential storage.")
        except Exception as exc:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Failed to store API key securely: {exc}",
                hint=(
                    "Install and configure a keyring backend, or rerun with "
                    "`--no-store-api-key` for one-off usage."
                ),
            ) from exc

    return runtime_cli_values, runtime_secure_values


def load_conversation(path: Path) -> list[ConversationMessage]:
    """Load conversation messages from a JSON file.

    Accepts either a top-level list of `{"author", "text"}` objects or an object
    with a `messages` list of them.
    """

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Conversation file not found: `{path}`.",
            hint="Pass an existing conversation JSON file path.",
        ) from exc
    except json.JSONDecodeError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Conversation file `{path}` is not valid JSON: {exc.msg}.",
            hint="Fix the JSON syntax and rerun.",
        ) from exc

    raw_messages = payload.get("messages") if isinstance(payload, dict) else payload
    if not isinstance(raw_messages, list):
        raise PipelineStageError(
            stage="input",
            detail=f"Conversation file `{path}` must contain a list of messages.",
            hint='Use `[{"author": "...", "text": "..."}]` or `{"messages": [...]}`.',
        )

    messages: list[ConversationMessage] = []
    for index, item in enumerate(raw_messages, start=1):
        if (
            not isinstance(item, dict)
            or not isinstance(item.get("author"), str)
            or not isinstance(item.get("text"), str)
        ):
            raise PipelineStageError(
                stage="input",
                detail=f"Message {index} in `{path}` must have string `author` and `text`.",
                hint="Every message needs an `author` and a `text` field.",
            )
        messages.append(ConversationMessage(author=item["author"], text=item["text"]))
    if not messages:
        raise PipelineStageError(
            stage="input",
            detail=f"Conversation file `{path}` contains no messages.",
            hint="Provide at least one message to explain.",
        )
    return messages
