# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Sliding window rate limiter for model calls.

Tracks the start time of every permitted call over the last hour and answers
whether another call may start now without exceeding the per-minute and
per-hour budgets. Denial has no side effects; callers decide whether to
queue or fail.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)

MINUTE_WINDOW = 60.0
HOUR_WINDOW = 3600.0


class SlidingWindowRateLimiter:
    """
    In-memory sliding window limiter with a minute and an hour window.

    The timestamps form a single deque ordered oldest first, pruned to the
    hour window. The minute window is always a suffix of it, so both counts
    come from one structure.

    State is not persisted and resets with the process. The limiter is not
    thread-safe; it is meant to be owned by a single event loop.

    Example:
        >>> limiter = SlidingWindowRateLimiter(requests_per_minute=2)
        >>> limiter.can_proceed()
        True
        >>> limiter.record_call(); limiter.record_call()
        >>> limiter.can_proceed()
        False
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the limiter.

        Args:
            requests_per_minute: Calls allowed within any trailing 60 seconds
            requests_per_hour: Calls allowed within any trailing hour
            clock: Monotonic time source in seconds (injectable for tests)
        """
        if requests_per_minute < 1 or requests_per_hour < 1:
            raise ValueError("rate limits must be at least 1")

        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self._clock = clock
        self._timestamps: deque[float] = deque()

    def _count_since(self, cutoff: float) -> int:
        # Timestamps are ascending, so scan from the newest end
        count = 0
        for ts in reversed(self._timestamps):
            if ts <= cutoff:
                break
            count += 1
        return count

    def requests_in_last_minute(self) -> int:
        """Number of recorded calls within the trailing 60 seconds."""
        return self._count_since(self._clock() - MINUTE_WINDOW)

    def requests_in_last_hour(self) -> int:
        """Number of recorded calls within the trailing hour."""
        return self._count_since(self._clock() - HOUR_WINDOW)

    def can_proceed(self) -> bool:
        """
        Check if a new call may start now.

        Returns:
            True iff both the minute and the hour window are below their limits
        """
        return (
            self.requests_in_last_minute() < self.requests_per_minute
            and self.requests_in_last_hour() < self.requests_per_hour
        )

    def record_call(self) -> None:
        """Record that a call started now and drop entries older than an hour."""
        now = self._clock()
        self._timestamps.append(now)
        self._prune(now)

    def _prune(self, now: float) -> None:
        cutoff = now - HOUR_WINDOW
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

    def time_until_available(self) -> float:
        """
        Seconds until a call would be permitted.

        Returns:
            0.0 if a call may start now, otherwise the time until the oldest
            blocking timestamp leaves its window
        """
        now = self._clock()
        waits = [0.0]

        minute_count = self._count_since(now - MINUTE_WINDOW)
        if minute_count >= self.requests_per_minute:
            # The call that must expire is the one that keeps the count at the limit
            blocking = self._timestamps[-self.requests_per_minute]
            waits.append(blocking + MINUTE_WINDOW - now)

        hour_count = self._count_since(now - HOUR_WINDOW)
        if hour_count >= self.requests_per_hour:
            blocking = self._timestamps[-self.requests_per_hour]
            waits.append(blocking + HOUR_WINDOW - now)

        return max(waits)

    def reset(self) -> None:
        """Forget every recorded call."""
        self._timestamps.clear()
        logger.debug("Rate limiter window reset")

    def __len__(self) -> int:
        return len(self._timestamps)


__all__ = ["HOUR_WINDOW", "MINUTE_WINDOW", "SlidingWindowRateLimiter"]
