"""Command-line interface for Threadle.

Responsibilities:
- Expose user-facing commands for explaining conversations and managing credentials.
- Convert CLI arguments into `ThreadleConfig` and run the translation pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
import os
from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    echo_history,
    echo_styles,
    echo_translation_result,
    exit_with_command_error,
)
from .cli_runtime import load_conversation, prompt_hidden_api_key, resolve_provider_runtime_sources
from .config import ConfigLoader, RuntimeConfigSources, ThreadleConfig
from .credentials import create_credential_store
from .errors import PipelineStageError
from .io.history import JsonlTranslationHistory
from .models.datatypes import (
    ConversationMessage,
    RequesterProfile,
    SUPPORTED_LANGUAGES,
    TRANSLATION_STYLES,
    TranslationResult,
)
from .parsing import normalize_optional_string
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger, configure_logging
from .translation.orchestrator import TranslationOrchestrator
from .translation.templates import ROLE_TEMPLATE_MAP

app = typer.Typer(
    name="threadle",
    no_args_is_help=True,
    help="Threadle CLI: role-tailored explanations of chat threads.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
ProviderOption = Annotated[
    str | None,
    typer.Option("--provider", help="LLM provider id: `openai`, `anthropic`, or `google`."),
]
ModelOption = Annotated[str | None, typer.Option("--model", help="Model id override.")]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="Provider API key override. Prefer `--prompt-api-key` to avoid shell history.",
    ),
]
PromptApiKeyOption = Annotated[
    bool,
    typer.Option("--prompt-api-key", help="Prompt for API key with hidden input."),
]
StoreApiKeyOption = Annotated[
    bool,
    typer.Option(
        "--store-api-key/--no-store-api-key",
        help="Persist CLI-entered API key to secure credential storage.",
    ),
]


def _load_base_config(config_path: Path | None) -> ThreadleConfig:
    """Load YAML config when requested, else env config, mapping failures to stage errors."""

    if config_path is None:
        try:
            return ConfigLoader.from_env()
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix the `THREADLE_*` environment variables and rerun.",
            ) from exc

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except Exception as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify YAML syntax and file permissions.",
        ) from exc


def _resolve_command_config(
    config_file: Path | None,
    provider: str | None,
    model: str | None,
    api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
) -> ThreadleConfig:
    """Resolve base config and attach CLI, secure, and env runtime sources."""

    runtime_cli_values, runtime_secure_values = resolve_provider_runtime_sources(
        provider=provider,
        model=model,
        api_key=api_key,
        prompt_api_key=prompt_api_key,
        store_api_key=store_api_key,
        credential_store_factory=create_credential_store,
    )
    base_config = _load_base_config(config_file)
    return replace(
        base_config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=os.environ,
        ),
    )


def _require_choice(value: str, choices: tuple[str, ...], option_name: str) -> str:
    """Validate an option value against a fixed choice list."""

    if value not in choices:
        raise PipelineStageError(
            stage="input",
            detail=f"Unsupported {option_name} `{value}`.",
            hint=f"Use one of: {', '.join(choices)}.",
        )
    return value


async def _explain(
    config: ThreadleConfig,
    profile: RequesterProfile,
    messages: list[ConversationMessage],
    style: str,
    history_path: Path | None,
) -> TranslationResult:
    """Build the provider and orchestrator, then explain one conversation."""

    run_logger = RunLogger()
    provider = ProviderFactory.create_from_config(config)
    recorder = JsonlTranslationHistory(history_path) if history_path is not None else None
    orchestrator = TranslationOrchestrator(
        provider,
        config=config,
        recorder=recorder,
        run_logger=run_logger,
    )
    orchestrator.start()
    try:
        return await orchestrator.run(profile, messages, style)
    finally:
        orchestrator.close()


@app.command("explain")
def explain_command(
    conversation_json: Annotated[
        Path,
        typer.Argument(help="Path to conversation JSON (list of `author`/`text` messages)."),
    ],
    role: Annotated[
        str,
        typer.Option("--role", help="Requester role, for example `Product` or `Design`."),
    ] = "default",
    language: Annotated[
        str | None,
        typer.Option("--language", help="Explanation language (defaults to config)."),
    ] = None,
    style: Annotated[
        str | None,
        typer.Option("--style", help="Explanation style (defaults to config)."),
    ] = None,
    custom_instructions: Annotated[
        str | None,
        typer.Option("--custom-instructions", help="Extra reader instructions for the prompt."),
    ] = None,
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
    history: Annotated[
        Path | None,
        typer.Option("--history", help="Append the translation record to this JSONL file."),
    ] = None,
) -> None:
    """Explain a conversation for a requester role."""

    try:
        config = _resolve_command_config(
            config_file=config_file,
            provider=provider,
            model=model,
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
        )
        messages = load_conversation(conversation_json)
        resolved_language = _require_choice(
            language or config.default_language, SUPPORTED_LANGUAGES, "language"
        )
        resolved_style = _require_choice(
            style or config.default_style, TRANSLATION_STYLES, "style"
        )
        profile = RequesterProfile(
            role=role,
            language=resolved_language,
            custom_instructions=normalize_optional_string(custom_instructions),
        )
        history_path = history if history is not None else config.history_path
        result = asyncio.run(
            _explain(config, profile, messages, resolved_style, history_path)
        )
    except Exception as exc:
        exit_with_command_error("explain", exc)

    echo_translation_result(result)


@app.command("test-connection")
def test_connection_command(
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = False,
) -> None:
    """Verify provider credentials and connectivity with a minimal request."""

    try:
        config = _resolve_command_config(
            config_file=config_file,
            provider=provider,
            model=model,
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
        )
        llm_provider = ProviderFactory.create_from_config(config)
        asyncio.run(llm_provider.test_connection())
    except Exception as exc:
        exit_with_command_error("test-connection", exc)

    typer.echo(f"Connection OK: provider={llm_provider.get_provider_name()}")


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored CLI credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = prompt_hidden_api_key("LLM provider API key (hidden input)")
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key()
        if removed:
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    has_stored_key = credential_store.get_api_key() is not None
    status = "present" if has_stored_key else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored LLM API key: {status}")


@app.command("styles")
def styles_command() -> None:
    """List explanation styles and role template mappings."""

    echo_styles(TRANSLATION_STYLES, ROLE_TEMPLATE_MAP)


@app.command("history")
def history_command(
    path: Annotated[Path, typer.Argument(help="Path to translation history JSONL file.")],
    limit: Annotated[
        int | None,
        typer.Option("--limit", min=1, help="Show only the newest N records."),
    ] = None,
) -> None:
    """List persisted translation records."""

    try:
        records = JsonlTranslationHistory(path).read_records(limit=limit)
    except Exception as exc:
        exit_with_command_error("history", exc)

    echo_history(records)


def main() -> None:
    """CLI entrypoint for console scripts."""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
