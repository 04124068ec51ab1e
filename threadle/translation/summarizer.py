"""Token-budget handling for long conversations.

Responsibilities:
- Estimate conversation token usage with the 4-characters-per-token heuristic.
- Condense long conversations into one summary message via the provider.
- Truncate conversations to the newest messages that fit a token budget.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from ..llm.base import LLMProvider
from ..models.datatypes import CompletionOptions, ConversationMessage

DEFAULT_TOKEN_LIMIT = 2000
CHARS_PER_TOKEN = 4
SUMMARY_AUTHOR = "System Summary"
SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_TOKENS = 500


def estimate_text_tokens(text: str) -> int:
    """Return the estimated token count for a single string."""

    return math.ceil(len(text) / CHARS_PER_TOKEN)


class ConversationSummarizer:
    """Keep conversations within a token budget by summarizing or truncating."""

    def estimate_tokens(self, messages: Sequence[ConversationMessage]) -> int:
        """Estimate total tokens over every author and text in the conversation."""

        total_chars = sum(len(message.author) + len(message.text) for message in messages)
        return math.ceil(total_chars / CHARS_PER_TOKEN)

    def exceeds_limit(
        self, messages: Sequence[ConversationMessage], limit: int = DEFAULT_TOKEN_LIMIT
    ) -> bool:
        """Return whether the estimated token count is strictly above `limit`."""

        return self.estimate_tokens(messages) > limit

    async def summarize(
        self, messages: Sequence[ConversationMessage], provider: LLMProvider
    ) -> ConversationMessage:
        """Summarize the conversation into one message using the provider's summary model.

        Provider failures propagate unchanged.
        """

        response = await provider.complete(
            self.summary_prompt(messages),
            CompletionOptions(
                temperature=SUMMARY_TEMPERATURE,
                max_tokens=SUMMARY_MAX_TOKENS,
                model=provider.summary_model or None,
            ),
        )
        return ConversationMessage(author=SUMMARY_AUTHOR, text=response.content)

    def truncate(
        self, messages: Sequence[ConversationMessage], limit: int = DEFAULT_TOKEN_LIMIT
    ) -> list[ConversationMessage]:
        """Keep the newest messages whose combined estimate fits within `limit`.

        Messages are scanned from newest to oldest; the scan stops at the first
        message that would exceed the limit, so older messages are never skipped over.
        """

        kept: list[ConversationMessage] = []
        current_tokens = 0
        for message in reversed(messages):
            message_tokens = estimate_text_tokens(message.author + message.text)
            if current_tokens + message_tokens > limit:
                break
            kept.append(message)
            current_tokens += message_tokens
        kept.reverse()
        return kept

    @staticmethod
    def summary_prompt(messages: Sequence[ConversationMessage]) -> str:
        """Return the summarization prompt for a conversation."""

        conversation_text = "\n".join(
            f"{message.author}: {message.text}" for message in messages
        )
        return (
            "Summarize the following conversation, preserving key information, "
            "decisions, and technical terms:\n\n"
            f"{conversation_text}\n\n"
            "Provide a concise summary that captures:\n"
            "1. Main topics discussed\n"
            "2. Key decisions made\n"
            "3. Important technical terms and concepts\n"
            "4. Action items or next steps\n\n"
            "Keep the summary clear and factual."
        )
