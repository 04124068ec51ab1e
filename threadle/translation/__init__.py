"""Conversation translation pipeline components."""

from .orchestrator import ConversationDirectory, TranslationOrchestrator, TranslationRecorder
from .prompts import PromptComposer
from .redactor import REDACTION_PLACEHOLDER, PIIRedactor
from .summarizer import ConversationSummarizer

__all__ = [
    "ConversationDirectory",
    "ConversationSummarizer",
    "PIIRedactor",
    "PromptComposer",
    "REDACTION_PLACEHOLDER",
    "TranslationOrchestrator",
    "TranslationRecorder",
]
