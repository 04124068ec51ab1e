"""Translation orchestration for conversation explanations.

Responsibilities:
- Run the cache -> redact -> budget -> compose -> complete -> cache -> persist flow.
- Collapse concurrent identical requests when single-flight mode is enabled.
- Emit stage-level runtime logs and redaction audits without sensitive payloads.

Key types:
- `TranslationOrchestrator`: pipeline entry point with an injected provider.
- `TranslationRecorder`: append-only persistence sink for translation records.
- `ConversationDirectory`: lookup collaborator for profiles and conversations.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
import json
from typing import Protocol

from ..cache.keys import derive_cache_key
from ..cache.store import CacheStore
from ..config import ThreadleConfig
from ..errors import PipelineStageError
from ..llm.base import LLMProvider
from ..models.datatypes import (
    AI_DISCLAIMER,
    CacheStats,
    CompletionOptions,
    ConversationMessage,
    Redaction,
    RequesterProfile,
    TranslationRecord,
    TranslationResult,
)
from ..telemetry.logger import RunLogger
from .prompts import PromptComposer
from .redactor import PIIRedactor
from .summarizer import ConversationSummarizer

EXPLANATION_TEMPERATURE = 0.4
EXPLANATION_MAX_TOKENS = 1000


class TranslationRecorder(Protocol):
    """Append-only persistence sink for completed translations."""

    async def record(self, record: TranslationRecord) -> None:
        """Persist one translation record."""


class ConversationDirectory(Protocol):
    """Lookup collaborator for requester profiles and conversation messages."""

    async def get_profile(self, user_id: str) -> RequesterProfile | None:
        """Return the requester profile for a user, or `None` when unknown."""

    async def get_messages(self, conversation_id: str) -> list[ConversationMessage]:
        """Return the messages of a conversation in chronological order."""


def _utc_now() -> datetime:
    """Return the current UTC timestamp."""

    return datetime.now(timezone.utc)


class TranslationOrchestrator:
    """Turn a conversation into a role-tailored explanation via the active provider."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        config: ThreadleConfig | None = None,
        cache: CacheStore | None = None,
        redactor: PIIRedactor | None = None,
        summarizer: ConversationSummarizer | None = None,
        composer: PromptComposer | None = None,
        recorder: TranslationRecorder | None = None,
        directory: ConversationDirectory | None = None,
        run_logger: RunLogger | None = None,
        single_flight: bool | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize collaborators; omitted ones fall back to default instances."""

        self.provider = provider
        self.config = config if config is not None else ThreadleConfig()
        self.run_logger = run_logger if run_logger is not None else RunLogger()
        self.cache = (
            cache
            if cache is not None
            else CacheStore(sweep_interval_seconds=self.config.cache_sweep_interval_seconds)
        )
        self.redactor = redactor if redactor is not None else PIIRedactor(self.run_logger)
        self.summarizer = summarizer if summarizer is not None else ConversationSummarizer()
        self.composer = composer if composer is not None else PromptComposer()
        self.recorder = recorder
        self.directory = directory
        self.single_flight = (
            self.config.single_flight if single_flight is None else single_flight
        )
        self._now = now
        self._in_flight: dict[str, asyncio.Future[TranslationResult]] = {}

    @property
    def disclaimer(self) -> str:
        """Return the AI disclaimer appended to every explanation."""

        return AI_DISCLAIMER

    async def run(
        self,
        profile: RequesterProfile,
        messages: Sequence[ConversationMessage],
        style: str,
        *,
        conversation_id: str | None = None,
        user_id: str | None = None,
    ) -> TranslationResult:
        """Explain a conversation for a requester profile in the given style.

        Cache hits return the stored result without any other side effect. On a
        miss the result is cached and, when a recorder is configured, persisted.
        """

        message_list = list(messages)
        cache_key = derive_cache_key(message_list, profile.role, profile.language, style)
        cached = self.cache.get(cache_key)
        if cached is not None:
            self.run_logger.log_cache_event("hit")
            return cached
        self.run_logger.log_cache_event("miss")

        if not self.single_flight:
            return await self._compute(
                cache_key, profile, message_list, style, conversation_id, user_id
            )

        pending = self._in_flight.get(cache_key)
        if pending is not None:
            self.run_logger.log_cache_event("join")
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(
            self._compute(cache_key, profile, message_list, style, conversation_id, user_id)
        )
        self._in_flight[cache_key] = task
        try:
            return await asyncio.shield(task)
        finally:
            if self._in_flight.get(cache_key) is task:
                del self._in_flight[cache_key]

    async def translate(self, conversation_id: str, user_id: str) -> TranslationResult:
        """Look up the requester and conversation, then run the pipeline.

        The style is the requester's preferred style, or the configured default.
        """

        if self.directory is None:
            raise PipelineStageError(
                stage="lookup",
                detail="No conversation directory is configured for lookups.",
                hint="Construct the orchestrator with a `directory` collaborator.",
            )
        profile = await self.directory.get_profile(user_id)
        if profile is None:
            raise PipelineStageError(
                stage="lookup",
                detail=f"No requester profile found for user `{user_id}`.",
                hint="Create a profile with a role and language before requesting explanations.",
            )
        messages = await self.directory.get_messages(conversation_id)
        style = profile.preferred_style or self.config.default_style
        return await self.run(
            profile,
            messages,
            style,
            conversation_id=conversation_id,
            user_id=user_id,
        )

    async def translate_messages(
        self,
        profile: RequesterProfile,
        messages: Sequence[ConversationMessage],
        style: str,
    ) -> str:
        """Run the pipeline and return only the explanation text."""

        result = await self.run(profile, messages, style)
        return result.content

    def start(self) -> None:
        """Start the periodic cache sweep on the running event loop."""

        self.cache.start_sweeper()

    def close(self) -> None:
        """Stop the cache sweep and drop cached translations."""

        self.cache.destroy()

    def cache_stats(self) -> CacheStats:
        """Return translation cache statistics."""

        return self.cache.get_stats()

    def clear_cache(self) -> None:
        """Drop every cached translation and reset cache counters."""

        self.cache.clear()

    async def _compute(
        self,
        cache_key: str,
        profile: RequesterProfile,
        messages: list[ConversationMessage],
        style: str,
        conversation_id: str | None,
        user_id: str | None,
    ) -> TranslationResult:
        """Execute every uncached pipeline step and return the stored result."""

        with self._stage("redact"):
            redacted_messages: list[ConversationMessage] = []
            applied: list[Redaction] = []
            for message in messages:
                redaction = self.redactor.redact(message.text)
                applied.extend(redaction.redactions)
                redacted_messages.append(
                    ConversationMessage(author=message.author, text=redaction.text)
                )
            self.redactor.log_redactions(applied)

        with self._stage("budget"):
            processed = await self._fit_budget(redacted_messages)

        with self._stage("compose"):
            prompt = self.composer.build(profile, processed, style)

        with self._stage("complete"):
            response = await self.provider.complete(
                prompt,
                CompletionOptions(
                    temperature=EXPLANATION_TEMPERATURE,
                    max_tokens=EXPLANATION_MAX_TOKENS,
                ),
            )

        result = TranslationResult(
            content=f"{response.content}\n\n{AI_DISCLAIMER}",
            token_usage=response.usage.total_tokens,
            provider=response.provider,
            model=response.model,
        )
        self.cache.set(cache_key, result, self.config.cache_ttl_seconds)
        self.run_logger.log_cache_event("store", ttl_seconds=self.config.cache_ttl_seconds)

        if self.recorder is not None:
            with self._stage("persist"):
                await self.recorder.record(
                    self._build_record(result, profile, messages, conversation_id, user_id)
                )
        return result

    async def _fit_budget(
        self, messages: list[ConversationMessage]
    ) -> list[ConversationMessage]:
        """Summarize or truncate messages that exceed the configured token budget.

        Above the summarization ceiling the newest messages that fit are kept.
        When not even the newest message fits, the conversation is summarized
        instead so the prompt never loses all of its content.
        """

        token_limit = self.config.token_limit
        estimate = self.summarizer.estimate_tokens(messages)
        if estimate <= token_limit:
            self.run_logger.log_stage_complete("budget", action="none", tokens=estimate)
            return messages
        if estimate > self.config.summarization_token_ceiling:
            truncated = self.summarizer.truncate(messages, token_limit)
            if truncated:
                self.run_logger.log_stage_complete(
                    "budget",
                    action="truncate",
                    tokens=estimate,
                    kept=len(truncated),
                )
                return truncated
        summary = await self.summarizer.summarize(messages, self.provider)
        self.run_logger.log_stage_complete("budget", action="summarize", tokens=estimate)
        return [summary]

    def _build_record(
        self,
        result: TranslationResult,
        profile: RequesterProfile,
        messages: list[ConversationMessage],
        conversation_id: str | None,
        user_id: str | None,
    ) -> TranslationRecord:
        """Build the persistence record for one computed translation."""

        original_messages = json.dumps(
            [{"author": message.author, "text": message.text} for message in messages],
            ensure_ascii=False,
        )
        return TranslationRecord(
            conversation_id=conversation_id,
            requested_by_user_id=user_id,
            original_messages=original_messages,
            translated_content=result.content,
            target_role=profile.role,
            language=profile.language,
            provider=result.provider,
            model=result.model,
            token_usage=result.token_usage,
            created_at=self._now().isoformat(),
        )

    @contextmanager
    def _stage(self, stage: str) -> Iterator[None]:
        """Log start and failure events around one pipeline stage."""

        self.run_logger.log_stage_start(stage)
        try:
            yield
        except Exception as exc:
            self.run_logger.log_stage_failure(stage, type(exc).__name__)
            raise
