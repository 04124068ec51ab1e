"""Caching layer for translation results.

This package provides the TTL cache store and deterministic key derivation.
"""

from .keys import derive_cache_key
from .store import CacheStore

__all__ = ["CacheStore", "derive_cache_key"]
