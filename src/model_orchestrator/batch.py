# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Bounded-concurrency batch execution.

A batch is an ordered list of zero-argument coroutine functions. A fixed
pool of workers pulls the next unstarted operation as soon as one of its
own finishes, so at most ``concurrency`` operations are in flight while
the pool stays saturated. Results come back in input order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .exceptions import ConfigurationError
from .observability.constants import BATCH_IN_FLIGHT
from .observability.protocols import MetricsCollectorProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 3

Operation = Callable[[], Awaitable[Any]]
ProgressCallback = Callable[[int, int], None]
"""Called as ``on_progress(completed, total)`` after each operation settles."""


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """
    Outcome of one operation in a batch.

    Attributes:
        index: Position of the operation in the submitted batch
        value: Result when the operation succeeded
        error: Exception when the operation failed
    """

    index: int
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T | None:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value


@dataclass(frozen=True)
class BatchSummary(Generic[T]):
    """Aggregate view over a finished batch."""

    results: Sequence[BatchResult[T]]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    def values(self) -> list[T | None]:
        """Values of the successful operations, in input order."""
        return [result.value for result in self.results if result.ok]

    def errors(self) -> list[Exception]:
        """Errors of the failed operations, in input order."""
        return [result.error for result in self.results if result.error is not None]

    def raise_first(self) -> None:
        """Raise the error of the lowest-index failure, if any."""
        for result in self.results:
            if result.error is not None:
                raise result.error


class BatchOrchestrator:
    """
    Runs batches of operations with a cap on concurrent executions.

    Each operation is passed through ``execute`` (the orchestrator routes
    it through the request pipeline there); by default it is simply
    awaited.

    Example:
        >>> batch = BatchOrchestrator()
        >>> results = await batch.run_batch([op_a, op_b, op_c], concurrency=2)
        >>> [r.value for r in results]
        ['a', 'b', 'c']
    """

    def __init__(
        self,
        execute: Callable[[Operation], Awaitable[Any]] | None = None,
        metrics_collector: MetricsCollectorProtocol | None = None,
    ) -> None:
        self._execute = execute if execute is not None else _await_operation
        self._metrics_collector = metrics_collector
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Operations currently executing across all running batches."""
        return self._in_flight

    async def run_batch(
        self,
        operations: Iterable[Operation],
        concurrency: int = DEFAULT_CONCURRENCY,
        *,
        fail_fast: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> list[BatchResult[Any]]:
        """
        Execute every operation with at most ``concurrency`` in flight.

        Args:
            operations: Zero-argument coroutine functions, in order
            concurrency: Maximum simultaneous executions (>= 1)
            fail_fast: Cancel outstanding work and raise the first error
            on_progress: Called with ``(completed, total)`` after each settles

        Returns:
            One BatchResult per operation, in input order

        Raises:
            ConfigurationError: If concurrency is less than 1
            Exception: With ``fail_fast``, the first operation error unchanged
        """
        if concurrency < 1:
            raise ConfigurationError("concurrency must be at least 1")

        pending_ops = list(operations)
        total = len(pending_ops)
        if total == 0:
            return []

        results: list[BatchResult[Any] | None] = [None] * total
        indices = iter(range(total))
        completed = 0
        first_error: Exception | None = None

        async def worker() -> None:
            nonlocal completed, first_error
            # Workers share one iterator, so each index is taken exactly once
            for index in indices:
                self._track_in_flight(1)
                try:
                    value = await self._execute(pending_ops[index])
                except Exception as e:
                    if fail_fast:
                        if first_error is None:
                            first_error = e
                        raise
                    logger.debug(f"Batch operation {index} failed: {e}")
                    results[index] = BatchResult(index=index, error=e)
                else:
                    results[index] = BatchResult(index=index, value=value)
                finally:
                    self._track_in_flight(-1)

                completed += 1
                if on_progress is not None:
                    on_progress(completed, total)

        workers = [
            asyncio.create_task(worker(), name=f"batch_worker_{n}")
            for n in range(min(concurrency, total))
        ]
        try:
            done, _ = await asyncio.wait(workers, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in workers:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        if first_error is not None:
            raise first_error
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]

        return [result for result in results if result is not None]

    async def run_batch_with_progress(
        self,
        operations: Iterable[Operation],
        on_progress: ProgressCallback,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> list[BatchResult[Any]]:
        """run_batch with a mandatory progress callback."""
        return await self.run_batch(operations, concurrency, on_progress=on_progress)

    def _track_in_flight(self, delta: int) -> None:
        self._in_flight += delta
        if self._metrics_collector is not None:
            self._metrics_collector.set_gauge(BATCH_IN_FLIGHT, float(self._in_flight))


async def _await_operation(operation: Operation) -> Any:
    return await operation()


__all__ = [
    "DEFAULT_CONCURRENCY",
    "BatchOrchestrator",
    "BatchResult",
    "BatchSummary",
    "Operation",
    "ProgressCallback",
]
