# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rate limiting for outgoing model calls.

Available limiters:
- SlidingWindowRateLimiter: In-memory per-minute and per-hour sliding windows
"""

from .rate_limiter import HOUR_WINDOW, MINUTE_WINDOW, SlidingWindowRateLimiter

__all__ = ["HOUR_WINDOW", "MINUTE_WINDOW", "SlidingWindowRateLimiter"]
