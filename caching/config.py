"""
Caching Configuration

Module-specific settings for the page-content and summary caches.
"""
import os

# =========================
# Page Content Cache
# =========================

PAGE_CACHE_LIMIT = int(os.getenv("PAGE_CACHE_LIMIT", "24"))
PAGE_CACHE_TTL = int(os.getenv("PAGE_CACHE_TTL", str(6 * 60)))  # seconds

# =========================
# Summary Cache
# =========================

SUMMARY_CACHE_LIMIT = int(os.getenv("SUMMARY_CACHE_LIMIT", "40"))
SUMMARY_CACHE_TTL = int(os.getenv("SUMMARY_CACHE_TTL", str(15 * 60)))  # seconds

# =========================
# Redis Mirror (optional)
# =========================

# Write-through copy of summary records, shared across workers/restarts
SUMMARY_CACHE_REDIS_ENABLED = os.getenv("SUMMARY_CACHE_REDIS_ENABLED", "false").lower() in ("1", "true", "yes")

# Prefix for summary keys in Redis
SUMMARY_CACHE_KEY_PREFIX = os.getenv("SUMMARY_CACHE_KEY_PREFIX", "summary")
