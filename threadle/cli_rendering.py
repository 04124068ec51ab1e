"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
explanation results, available styles, and stored history rows.
"""

from __future__ import annotations

from typing import Mapping, NoReturn, Sequence

import typer

from .errors import ConfigurationError, PipelineStageError
from .llm.errors import LLMProviderError
from .models.datatypes import TranslationRecord, TranslationResult

_PROVIDER_FAILURE_HINTS = {
    "authentication": (
        "Set a valid API key via `threadle credentials --set-api-key` or pass one-time "
        "`--api-key` / `--prompt-api-key`."
    ),
    "rate_limit": "The provider is rate limiting requests; wait a moment and retry.",
    "timeout": (
        "The provider did not answer in time; retry or raise `provider_timeout_seconds`."
    ),
    "transport": "Check network connectivity to the provider and retry.",
    "malformed_response": (
        "The provider answered with an unexpected response body; verify the configured model."
    ),
    "provider": "Check the provider status page and the configured model, then retry.",
}


def provider_failure_hint(exc: LLMProviderError) -> str:
    """Return an actionable hint for a normalized provider failure kind."""

    return _PROVIDER_FAILURE_HINTS.get(exc.failure_kind, _PROVIDER_FAILURE_HINTS["provider"])


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    elif isinstance(exc, LLMProviderError):
        typer.secho(
            f"{command_name} failed: provider `{exc.provider}` error "
            f"(kind={exc.failure_kind}): {exc}",
            fg=typer.colors.RED,
            err=True,
        )
        typer.secho(f"Hint: {provider_failure_hint(exc)}", fg=typer.colors.YELLOW, err=True)
    elif isinstance(exc, ConfigurationError):
        typer.secho(
            f"{command_name} failed: invalid configuration: {exc}",
            fg=typer.colors.RED,
            err=True,
        )
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_translation_result(result: TranslationResult) -> None:
    """Print explanation content followed by provider usage metadata."""

    typer.echo(result.content)
    typer.echo("")
    typer.echo(f"Provider: {result.provider}")
    typer.echo(f"Model: {result.model}")
    typer.echo(f"Tokens: {result.token_usage}")


def echo_styles(styles: Sequence[str], role_template_map: Mapping[str, str]) -> None:
    """Print supported styles and the role -> template mapping."""

    typer.echo("Styles:")
    for style in styles:
        typer.echo(f"  {style}")
    typer.echo("Role templates:")
    for role in sorted(role_template_map):
        typer.echo(f"  {role} -> {role_template_map[role]}")
    typer.echo("  (other roles) -> default")


def echo_history(records: Sequence[TranslationRecord]) -> None:
    """Print compact deterministic history rows."""

    if not records:
        typer.echo("No translations recorded.")
        return
    for record in records:
        conversation = record.conversation_id or "-"
        typer.echo(
            f"{record.created_at} provider={record.provider} model={record.model} "
            f"role={record.target_role} language={record.language} "
            f"tokens={record.token_usage} conversation={conversation}"
        )
