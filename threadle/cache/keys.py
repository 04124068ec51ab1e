"""Deterministic cache keys for translation requests.

Keys hash a canonical JSON serialization of every input that affects a
translation, so any change to any message, role, language, or style yields a
different key.
"""

from __future__ import annotations

from collections.abc import Sequence
from hashlib import sha256
import json

from ..models.datatypes import ConversationMessage

_KEY_PREFIX = "translation"


def derive_cache_key(
    messages: Sequence[ConversationMessage],
    role: str,
    language: str,
    style: str,
) -> str:
    """Build a stable opaque cache key for one translation request."""

    identity = {
        "messages": [[message.author, message.text] for message in messages],
        "role": role,
        "language": language,
        "style": style,
    }
    canonical_identity = json.dumps(
        identity,
        sort_keys=True,
        ensure_ascii=True,
        separators=(",", ":"),
    )
    identity_hash = sha256(canonical_identity.encode("utf-8")).hexdigest()
    return f"{_KEY_PREFIX}:{identity_hash}"
