# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry with exponential backoff and jitter.

This module wraps a single asynchronous operation and re-invokes it on
retryable failures. The engine never wraps or replaces the error it gives
up on: the caller receives the original exception object so downstream
classification (fallback routing, message formatting) still sees its status.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..classification import is_retryable
from ..config import DEFAULT_RETRY_POLICY, RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Called before each retry sleep with (error, attempt_number, delay)
RetryCallback = Callable[[BaseException, int, float], None]


def compute_backoff_delay(
    policy: RetryPolicy,
    attempt: int,
    rand: Callable[[], float] = random.random,
) -> float:
    """
    Calculate the sleep before retrying after a failed attempt.

    Args:
        policy: Retry policy supplying base delay, multiplier, cap, and jitter
        attempt: The failed attempt number (0-based)
        rand: Source of uniform [0, 1) values for jitter

    Returns:
        Delay in seconds: the capped exponential delay plus jitter
    """
    delay = min(
        policy.base_delay * (policy.backoff_multiplier**attempt), policy.max_delay
    )
    jitter: float = rand() * policy.jitter_ratio * delay  # noqa: S311  # nosec B311
    return float(delay + jitter)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    retryable: Callable[[BaseException], bool] = is_retryable,
    on_retry: RetryCallback | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Invoke ``operation`` until it succeeds or the policy gives up.

    Non-retryable errors are raised after the first attempt. Retryable errors
    are retried with backoff while attempts remain. ``operation`` is invoked
    at most ``policy.max_attempts`` times; making it idempotent is the
    caller's responsibility.

    Args:
        operation: Zero-argument coroutine function performing one attempt
        policy: Retry policy (defaults to DEFAULT_RETRY_POLICY)
        retryable: Predicate deciding whether an error may be retried
        on_retry: Optional hook called before each backoff sleep
        sleep: Coroutine used to wait between attempts

    Returns:
        The result of the first successful attempt

    Raises:
        Exception: The last error, unchanged, once retries are exhausted or
            the error is not retryable
    """
    policy = policy or DEFAULT_RETRY_POLICY
    attempt = 0

    while True:
        try:
            return await operation()
        except asyncio.CancelledError:
            raise  # Always re-raise for graceful shutdown
        except Exception as e:
            if attempt >= policy.max_attempts - 1 or not retryable(e):
                raise

            delay = compute_backoff_delay(policy, attempt)
            logger.warning(
                f"Retry attempt {attempt + 1}/{policy.max_attempts} "
                f"after {delay:.2f}s ({type(e).__name__}: {e})"
            )
            if on_retry is not None:
                on_retry(e, attempt + 1, delay)

            await sleep(delay)
            attempt += 1


__all__ = ["RetryCallback", "compute_backoff_delay", "execute_with_retry"]
