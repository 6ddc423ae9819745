# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
FIFO queue for requests deferred by the rate limiter.

Requests that cannot start because the rate limiter denies them are parked
here instead of being dropped. A single drain task works through the queue
in enqueue order: it polls the limiter at a fixed interval while the budget
is exhausted, and runs the head of the queue as soon as a call is permitted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import QueueClearedError
from ..limiting.rate_limiter import SlidingWindowRateLimiter
from ..observability.constants import QUEUE_DEPTH
from ..observability.protocols import MetricsCollectorProtocol

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


@dataclass
class QueuedOperation:
    """
    A deferred unit of work waiting in the request queue.

    Attributes:
        operation: Zero-argument coroutine function to run once permitted
        future: Future resolved with the operation's result or exception
        enqueued_at: Monotonic time the operation was queued
    """

    operation: Callable[[], Awaitable[Any]]
    future: "asyncio.Future[Any]"
    enqueued_at: float = field(default_factory=time.monotonic)


class RequestQueue:
    """
    Strict FIFO queue drained under the control of a rate limiter.

    Only one drain task runs at a time; enqueueing while it is active just
    appends to the buffer. Each dequeued operation is recorded with the
    limiter before it starts and is awaited to completion before the next
    one is considered, so queued work never overtakes itself.

    Errors raised by an operation are delivered to its own future and never
    stop the drain loop.

    Example:
        >>> queue = RequestQueue(limiter, poll_interval=1.0)
        >>> result = await queue.enqueue(lambda: call_model("gpt-4o", payload))
    """

    def __init__(
        self,
        rate_limiter: SlidingWindowRateLimiter,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        metrics_collector: MetricsCollectorProtocol | None = None,
    ) -> None:
        """
        Initialize the queue.

        Args:
            rate_limiter: Limiter consulted before each dequeue
            poll_interval: Seconds to wait before rechecking a denying limiter
            metrics_collector: Optional collector for the queue depth gauge
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.rate_limiter = rate_limiter
        self.poll_interval = poll_interval
        self._metrics_collector = metrics_collector
        self._buffer: deque[QueuedOperation] = deque()
        self._draining = False
        self._drain_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def is_draining(self) -> bool:
        """True while the drain task is active."""
        return self._draining

    def _update_depth_gauge(self) -> None:
        if self._metrics_collector is not None:
            self._metrics_collector.set_gauge(QUEUE_DEPTH, float(len(self._buffer)))

    def enqueue(self, operation: Callable[[], Awaitable[Any]]) -> "asyncio.Future[Any]":
        """
        Append an operation and return a future for its eventual result.

        Must be called from within a running event loop.

        Args:
            operation: Zero-argument coroutine function

        Returns:
            Future settled with the operation's result or exception
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._buffer.append(QueuedOperation(operation=operation, future=future))
        self._update_depth_gauge()

        logger.debug(f"Queued request (queue length {len(self._buffer)})")

        if not self._draining:
            self._draining = True
            self._drain_task = loop.create_task(
                self._drain(), name=f"request_queue_drain_{id(self)}"
            )

        return future

    async def _drain(self) -> None:
        try:
            while self._buffer:
                if not self.rate_limiter.can_proceed():
                    wait_hint = self.rate_limiter.time_until_available()
                    logger.debug(
                        f"Rate limit reached with {len(self._buffer)} queued; "
                        f"rechecking in {self.poll_interval:g}s "
                        f"(capacity frees in {wait_hint:.1f}s)"
                    )
                    await asyncio.sleep(self.poll_interval)
                    continue

                queued = self._buffer.popleft()
                self._update_depth_gauge()

                if queued.future.done():
                    # Caller gave up (cancelled) while waiting
                    continue

                self.rate_limiter.record_call()
                await self._run(queued)
        finally:
            self._draining = False
            self._drain_task = None

    async def _run(self, queued: QueuedOperation) -> None:
        try:
            result = await queued.operation()
        except asyncio.CancelledError:
            if not queued.future.done():
                queued.future.cancel()
            raise
        except Exception as e:
            if not queued.future.done():
                queued.future.set_exception(e)
        else:
            if not queued.future.done():
                queued.future.set_result(result)

    def clear(self, reason: str = "Request queue cleared") -> int:
        """
        Drop every pending operation.

        Each dropped caller receives a QueueClearedError.

        Returns:
            Number of operations dropped
        """
        dropped = 0
        while self._buffer:
            queued = self._buffer.popleft()
            if not queued.future.done():
                queued.future.set_exception(QueueClearedError(reason))
                dropped += 1
        self._update_depth_gauge()

        if dropped:
            logger.warning(f"Dropped {dropped} queued requests: {reason}")
        return dropped

    async def aclose(self) -> None:
        """Stop the drain task and fail every pending operation."""
        task = self._drain_task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        self.clear("Request queue closed")


__all__ = ["DEFAULT_POLL_INTERVAL", "QueuedOperation", "RequestQueue"]
