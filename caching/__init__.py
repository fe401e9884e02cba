"""
Caching Module

Provides:
- Generic bounded TTL cache with approximate-LRU eviction
- Optional Redis mirror for summary records
"""

from .cache_store import CacheStore, CacheEntry
from .redis_mirror import RedisCacheMirror
from .config import (
    PAGE_CACHE_LIMIT,
    PAGE_CACHE_TTL,
    SUMMARY_CACHE_LIMIT,
    SUMMARY_CACHE_TTL,
    SUMMARY_CACHE_REDIS_ENABLED,
    SUMMARY_CACHE_KEY_PREFIX,
)

__all__ = [
    "CacheStore",
    "CacheEntry",
    "RedisCacheMirror",
    "PAGE_CACHE_LIMIT",
    "PAGE_CACHE_TTL",
    "SUMMARY_CACHE_LIMIT",
    "SUMMARY_CACHE_TTL",
    "SUMMARY_CACHE_REDIS_ENABLED",
    "SUMMARY_CACHE_KEY_PREFIX",
]
