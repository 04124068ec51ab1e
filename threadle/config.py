"""Configuration model and loaders for Threadle.

Responsibilities:
- Define pipeline configuration as a typed dataclass.
- Provide deterministic precedence resolution for provider/model/API-key settings.
- Provide loader entry points for YAML- and environment-based configuration.

Key types:
- `ThreadleConfig`: normalized settings consumed by the translation pipeline.
- `ProviderRuntimeConfig`: resolved provider/model/API-key values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `ThreadleConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError
from .models.datatypes import SUPPORTED_LANGUAGES, TRANSLATION_STYLES
from .parsing import normalize_optional_string, parse_permissive_boolean

SUPPORTED_PROVIDER_IDS = frozenset({"openai", "anthropic", "google"})

_DEFAULT_PROVIDER = "openai"
_DEFAULT_STYLE = "ELI5"
_DEFAULT_LANGUAGE = "English"
_DEFAULT_CACHE_TTL_SECONDS = 3600
_DEFAULT_TOKEN_LIMIT = 2000
_DEFAULT_SUMMARIZATION_TOKEN_CEILING = 12000


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved provider settings for constructing the active LLM provider.

    Attributes:
        provider: Provider identifier (`openai`, `anthropic`, or `google`).
        model: Optional model override; `None` keeps the provider default.
        api_key: Provider API key (never persisted or logged).
    """

    provider: str
    model: str | None = None
    api_key: str | None = None


@dataclass(slots=True)
class ThreadleConfig:
    """Runtime configuration for the translation pipeline.

    Attributes:
        llm_provider: Active provider identifier.
        llm_model: Optional model override for explanation calls.
        api_key: Optional provider API key.
        default_style: Style used when the requester has no preference.
        default_language: Language used when the requester has none.
        cache_ttl_seconds: Lifetime of cached translations.
        token_limit: Estimated token budget before summarization or truncation.
        summarization_token_ceiling: Largest estimate still summarized instead of truncated.
        cache_sweep_interval_seconds: Period of the expired-entry sweep (`0` disables it).
        provider_timeout_seconds: Timeout guard for each provider attempt.
        max_retries: Retries after the first provider attempt.
        retry_initial_delay_seconds: Backoff delay before the first retry.
        single_flight: Collapse concurrent identical requests into one computation.
        history_path: Optional JSONL path for persisted translation records.
        runtime_sources: Optional runtime source overrides injected by the CLI.
    """

    llm_provider: str = _DEFAULT_PROVIDER
    llm_model: str | None = None
    api_key: str | None = None
    default_style: str = _DEFAULT_STYLE
    default_language: str = _DEFAULT_LANGUAGE
    cache_ttl_seconds: int = _DEFAULT_CACHE_TTL_SECONDS
    token_limit: int = _DEFAULT_TOKEN_LIMIT
    summarization_token_ceiling: int = _DEFAULT_SUMMARIZATION_TOKEN_CEILING
    cache_sweep_interval_seconds: float = 60.0
    provider_timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_initial_delay_seconds: float = 1.0
    single_flight: bool = False
    history_path: Path | None = None
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate configuration values before pipeline construction."""

        self._validate_provider_id(self.llm_provider)
        if self.default_style not in TRANSLATION_STYLES:
            supported = ", ".join(TRANSLATION_STYLES)
            raise ConfigurationError(
                f"Invalid `default_style` `{self.default_style}`; supported: {supported}."
            )
        if self.default_language not in SUPPORTED_LANGUAGES:
            supported = ", ".join(SUPPORTED_LANGUAGES)
            raise ConfigurationError(
                f"Invalid `default_language` `{self.default_language}`; supported: {supported}."
            )
        if self.cache_ttl_seconds < 0:
            raise ConfigurationError("`cache_ttl_seconds` must be a non-negative integer.")
        if self.token_limit <= 0:
            raise ConfigurationError("`token_limit` must be a positive integer.")
        if self.summarization_token_ceiling < self.token_limit:
            raise ConfigurationError(
                "`summarization_token_ceiling` must be greater than or equal to `token_limit`."
            )
        if self.provider_timeout_seconds <= 0:
            raise ConfigurationError("`provider_timeout_seconds` must be positive.")
        if self.max_retries < 0:
            raise ConfigurationError("`max_retries` must be a non-negative integer.")
        if self.retry_initial_delay_seconds < 0:
            raise ConfigurationError("`retry_initial_delay_seconds` must be non-negative.")

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve provider settings with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field value.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources

        provider = self._resolve_runtime_value(
            key="llm_provider",
            env_key="THREADLE_LLM_PROVIDER",
            default_value=self.llm_provider,
            sources=resolved_sources,
        )
        model = self._resolve_optional_runtime_value(
            key="llm_model",
            env_key="THREADLE_LLM_MODEL",
            default_value=self.llm_model,
            sources=resolved_sources,
        )
        api_key = self._resolve_optional_runtime_value(
            key="api_key",
            env_key="THREADLE_LLM_API_KEY",
            default_value=self.api_key,
            sources=resolved_sources,
        )
        self._validate_provider_id(provider)
        return ProviderRuntimeConfig(provider=provider, model=model, api_key=api_key)

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a required runtime value from sources in precedence order."""

        value = self._resolve_optional_runtime_value(key, env_key, default_value, sources)
        if value is None:
            raise ConfigurationError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or defaults."
            )
        return value

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in precedence order."""

        cli_value = self._normalized_lookup(sources.cli, key)
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, key)
        if secure_value is not None:
            return secure_value

        env_value = self._normalized_lookup(sources.env, env_key)
        if env_value is not None:
            return env_value

        return normalize_optional_string(default_value)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _validate_provider_id(provider_id: str) -> None:
        """Validate provider identifiers against supported providers."""

        if provider_id not in SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(sorted(SUPPORTED_PROVIDER_IDS))
            raise ConfigurationError(
                f"Unsupported `llm_provider` value `{provider_id}`; supported: {supported}."
            )


class ConfigLoader:
    """Factory methods for creating `ThreadleConfig` from external sources."""

    _STRING_KEYS = ("llm_provider", "llm_model", "api_key", "default_style", "default_language")
    _INT_KEYS = (
        "cache_ttl_seconds",
        "token_limit",
        "summarization_token_ceiling",
        "max_retries",
    )
    _FLOAT_KEYS = (
        "cache_sweep_interval_seconds",
        "provider_timeout_seconds",
        "retry_initial_delay_seconds",
    )
    _SUPPORTED_YAML_KEYS = frozenset(
        (*_STRING_KEYS, *_INT_KEYS, *_FLOAT_KEYS, "single_flight", "history_path")
    )
    _ENV_KEYS: Mapping[str, str] = {
        "THREADLE_LLM_PROVIDER": "llm_provider",
        "THREADLE_LLM_MODEL": "llm_model",
        "THREADLE_LLM_API_KEY": "api_key",
        "THREADLE_DEFAULT_STYLE": "default_style",
        "THREADLE_DEFAULT_LANGUAGE": "default_language",
        "THREADLE_CACHE_TTL": "cache_ttl_seconds",
        "THREADLE_TOKEN_LIMIT": "token_limit",
        "THREADLE_SUMMARIZATION_CEILING": "summarization_token_ceiling",
        "THREADLE_MAX_RETRIES": "max_retries",
        "THREADLE_CACHE_SWEEP_INTERVAL": "cache_sweep_interval_seconds",
        "THREADLE_PROVIDER_TIMEOUT": "provider_timeout_seconds",
        "THREADLE_RETRY_INITIAL_DELAY": "retry_initial_delay_seconds",
        "THREADLE_SINGLE_FLIGHT": "single_flight",
        "THREADLE_HISTORY_PATH": "history_path",
    }
    _RUNTIME_ENV_KEYS = frozenset(
        {"THREADLE_LLM_PROVIDER", "THREADLE_LLM_MODEL", "THREADLE_LLM_API_KEY"}
    )

    @staticmethod
    def from_yaml(path: Path) -> ThreadleConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ConfigurationError(
                f"YAML config `{path}` must contain a top-level mapping/object."
            )

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(str(key) for key in unknown)
            raise ConfigurationError(f"YAML `{path}` includes unsupported key(s): {key_list}.")

        return ConfigLoader._build_config(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> ThreadleConfig:
        """Create a validated config from `THREADLE_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload = {
            field_name: env_map[env_key]
            for env_key, field_name in ConfigLoader._ENV_KEYS.items()
            if env_key in env_map and normalize_optional_string(env_map[env_key]) is not None
        }
        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }
        config = ConfigLoader._build_config(payload, source_label="Environment")
        config.runtime_sources = RuntimeConfigSources(env=runtime_env)
        return config

    @staticmethod
    def _build_config(payload: Mapping[str, Any], source_label: str) -> ThreadleConfig:
        """Build a validated config from a normalized mapping payload."""

        values: dict[str, Any] = {}
        for key in ConfigLoader._STRING_KEYS:
            if key in payload:
                normalized = normalize_optional_string(payload[key])
                if normalized is not None:
                    values[key] = normalized
        for key in ConfigLoader._INT_KEYS:
            if key in payload:
                values[key] = ConfigLoader._parse_int(payload[key], key, source_label)
        for key in ConfigLoader._FLOAT_KEYS:
            if key in payload:
                values[key] = ConfigLoader._parse_float(payload[key], key, source_label)
        if "single_flight" in payload:
            parsed = parse_permissive_boolean(payload["single_flight"])
            if parsed is None:
                raise ConfigurationError(
                    f"{source_label} field `single_flight` must be a boolean value "
                    "(`true`/`false`, `1`/`0`, `yes`/`no`)."
                )
            values["single_flight"] = parsed
        history_path = normalize_optional_string(payload.get("history_path"))
        if history_path is not None:
            values["history_path"] = Path(history_path).expanduser()

        config = ThreadleConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _parse_int(raw_value: Any, key: str, source_label: str) -> int:
        """Parse an integer field, rejecting booleans and non-numeric text."""

        if isinstance(raw_value, bool):
            raise ConfigurationError(f"{source_label} field `{key}` must be an integer.")
        if isinstance(raw_value, int):
            return raw_value
        try:
            return int(str(raw_value).strip())
        except ValueError as exc:
            raise ConfigurationError(
                f"{source_label} field `{key}` must be an integer."
            ) from exc

    @staticmethod
    def _parse_float(raw_value: Any, key: str, source_label: str) -> float:
        """Parse a numeric field, rejecting booleans and non-numeric text."""

        if isinstance(raw_value, bool):
            raise ConfigurationError(f"{source_label} field `{key}` must be a number.")
        if isinstance(raw_value, int | float):
            return float(raw_value)
        try:
            return float(str(raw_value).strip())
        except ValueError as exc:
            raise ConfigurationError(f"{source_label} field `{key}` must be a number.") from exc
