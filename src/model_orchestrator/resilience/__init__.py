# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Resilience primitives for individual model calls.

- execute_with_retry: Exponential backoff with jitter for retryable errors
- compute_backoff_delay: The delay formula used between attempts
- with_timeout: Per-attempt deadline enforcement
"""

from .retry import RetryCallback, compute_backoff_delay, execute_with_retry
from .timeout import with_timeout

__all__ = [
    "RetryCallback",
    "compute_backoff_delay",
    "execute_with_retry",
    "with_timeout",
]
