"""Input/output components for Threadle.

This package contains the append-only translation history used as the
default persistence sink.
"""

from .history import JsonlTranslationHistory

__all__ = ["JsonlTranslationHistory"]
