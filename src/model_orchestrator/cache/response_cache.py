# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
TTL cache for model responses.

Entries expire lazily: an expired entry stays in memory until it is read
(or ``purge_expired`` runs), at which point it is evicted and reported as a
miss. Keys are content-addressed by ``make_cache_key`` so identical logical
requests share an entry regardless of which closure issued them.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..observability.constants import (
    CACHE_EVICTIONS_TOTAL,
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
)
from ..observability.protocols import MetricsCollectorProtocol

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 300.0


@dataclass(frozen=True)
class CacheEntry:
    """A cached response and the time it was stored."""

    key: str
    value: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Check if the entry is logically absent at ``now``."""
        return now - self.stored_at > self.ttl


@dataclass
class CacheStats:
    """Response cache counters."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


def _canonical_json(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=repr,
    )


def make_cache_key(
    task: str, payload: Any, model: str, namespace: str = "req"
) -> str:
    """
    Derive a stable cache key for a logical request.

    The key hashes the canonical JSON form of ``{task, payload, model}``
    (sorted keys, compact separators, ``repr`` for values JSON cannot
    encode), so equal requests map to the same key across calls.

    Args:
        task: Task category name
        payload: Request payload (any JSON-like structure)
        model: Model name the request targets
        namespace: Leading key segment, useful for prefix clears

    Returns:
        Key of the form ``"{namespace}:{task}:{sha256 hex digest}"``
    """
    canonical = _canonical_json({"task": task, "payload": payload, "model": model})
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{namespace}:{task}:{digest}"


class ResponseCache:
    """
    In-memory key/value cache with a TTL per entry.

    Not thread-safe; owned by a single event loop like the rest of the
    orchestrator's state.

    Example:
        >>> cache = ResponseCache(default_ttl=60.0)
        >>> cache.set("req:chat:abc", {"text": "hi"})
        >>> cache.get("req:chat:abc")
        {'text': 'hi'}
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
        metrics_collector: MetricsCollectorProtocol | None = None,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self.stats = CacheStats()
        self._metrics_collector = metrics_collector

    def _record(self, metric: str) -> None:
        if self._metrics_collector is not None:
            self._metrics_collector.inc_counter(metric)

    def lookup(self, key: str) -> tuple[bool, Any]:
        """
        Look up a key, distinguishing a cached ``None`` from a miss.

        Returns:
            ``(True, value)`` on a hit, ``(False, None)`` on a miss
        """
        entry = self._entries.get(key)
        if entry is None:
            self.stats.misses += 1
            self._record(CACHE_MISSES_TOTAL)
            return False, None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self.stats.evictions += 1
            self.stats.misses += 1
            self._record(CACHE_EVICTIONS_TOTAL)
            self._record(CACHE_MISSES_TOTAL)
            logger.debug(f"Evicted expired cache entry {key}")
            return False, None

        self.stats.hits += 1
        self._record(CACHE_HITS_TOTAL)
        return True, entry.value

    def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or None if absent or expired."""
        _, value = self.lookup(key)
        return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``, replacing any existing entry."""
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._entries[key] = CacheEntry(
            key=key, value=value, stored_at=self._clock(), ttl=ttl
        )

    def invalidate(self, key: str) -> bool:
        """Delete one entry. Returns True if it existed."""
        return self._entries.pop(key, None) is not None

    def clear(self, prefix: str | None = None) -> int:
        """
        Delete entries.

        Args:
            prefix: If given, delete only keys starting with it

        Returns:
            Number of entries deleted
        """
        if prefix is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            removed = len(doomed)

        if removed:
            logger.debug(f"Cleared {removed} cache entries (prefix={prefix!r})")
        return removed

    def purge_expired(self) -> int:
        """Evict every expired entry now. Returns the number evicted."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            self.stats.evictions += len(expired)
            if self._metrics_collector is not None:
                self._metrics_collector.inc_counter(
                    CACHE_EVICTIONS_TOTAL, value=len(expired)
                )
        return len(expired)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[call-overload]
        return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "DEFAULT_CACHE_TTL",
    "CacheEntry",
    "CacheStats",
    "ResponseCache",
    "make_cache_key",
]
