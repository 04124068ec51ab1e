"""Top-level package for Threadle.

This package turns chat threads into role-tailored, PII-redacted explanations
produced by a pluggable LLM provider. The main orchestration entry point is
`TranslationOrchestrator`.
"""

from .translation.orchestrator import TranslationOrchestrator

__all__ = ["TranslationOrchestrator", "__version__"]

__version__ = "0.1.0"
