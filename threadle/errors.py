"""Domain exceptions for configuration and CLI diagnostics."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid.

    Configuration failures are fatal: they are surfaced immediately and never
    retried by provider retry policies.
    """


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
