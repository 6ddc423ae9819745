# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Response caching.

- ResponseCache: TTL cache with lazy expiry and prefix clears
- make_cache_key: Content-addressed key for a {task, payload, model} request
"""

from .response_cache import (
    DEFAULT_CACHE_TTL,
    CacheEntry,
    CacheStats,
    ResponseCache,
    make_cache_key,
)

__all__ = [
    "DEFAULT_CACHE_TTL",
    "CacheEntry",
    "CacheStats",
    "ResponseCache",
    "make_cache_key",
]
