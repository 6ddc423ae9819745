"""
Unit tests for RequestQueue.

Tests cover:
- FIFO completion order under rate limiting
- Polling while the limiter denies
- Error delivery to the right caller
- Single drain task, clear() and aclose()
"""

import asyncio

import pytest

from model_orchestrator.exceptions import QueueClearedError
from model_orchestrator.limiting import SlidingWindowRateLimiter
from model_orchestrator.observability import QUEUE_DEPTH
from model_orchestrator.queue import RequestQueue


class SwitchLimiter(SlidingWindowRateLimiter):
    """Limiter whose admission is toggled by the test."""

    def __init__(self, allowed: bool = True) -> None:
        super().__init__(requests_per_minute=10_000, requests_per_hour=10_000)
        self.allowed = allowed
        self.recorded = 0

    def can_proceed(self) -> bool:
        return self.allowed

    def record_call(self) -> None:
        self.recorded += 1
        super().record_call()


def returning(value, log=None):
    async def operation():
        if log is not None:
            log.append(value)
        return value

    return operation


class TestOrdering:
    """Queued operations run in enqueue order."""

    @pytest.mark.asyncio
    async def test_fifo_completion_order(self):
        limiter = SwitchLimiter(allowed=False)
        queue = RequestQueue(limiter, poll_interval=0.01)
        started: list[str] = []

        futures = [queue.enqueue(returning(name, started)) for name in "ABC"]
        assert len(queue) == 3

        await asyncio.sleep(0.03)
        assert started == []

        limiter.allowed = True
        results = await asyncio.gather(*futures)

        assert results == ["A", "B", "C"]
        assert started == ["A", "B", "C"]
        assert limiter.recorded == 3
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_waits_for_budget_with_real_limiter(self):
        limiter = SlidingWindowRateLimiter(requests_per_minute=1)
        limiter.record_call()
        queue = RequestQueue(limiter, poll_interval=0.01)

        future = queue.enqueue(returning("late"))
        await asyncio.sleep(0.03)
        assert not future.done()
        assert queue.is_draining

        limiter.reset()
        assert await asyncio.wait_for(future, timeout=1.0) == "late"

    @pytest.mark.asyncio
    async def test_runs_one_at_a_time(self):
        queue = RequestQueue(SwitchLimiter(), poll_interval=0.01)
        active = 0
        peak = 0

        async def operation():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.005)
            active -= 1

        await asyncio.gather(*[queue.enqueue(operation) for _ in range(5)])
        assert peak == 1


class TestErrors:
    """Errors go to the caller that owns them."""

    @pytest.mark.asyncio
    async def test_error_delivered_and_drain_continues(self):
        queue = RequestQueue(SwitchLimiter(), poll_interval=0.01)

        async def failing():
            raise ValueError("bad")

        bad = queue.enqueue(failing)
        good = queue.enqueue(returning("fine"))

        with pytest.raises(ValueError, match="bad"):
            await bad
        assert await good == "fine"

    @pytest.mark.asyncio
    async def test_cancelled_caller_is_skipped(self):
        limiter = SwitchLimiter(allowed=False)
        queue = RequestQueue(limiter, poll_interval=0.01)
        ran: list[str] = []

        abandoned = queue.enqueue(returning("abandoned", ran))
        kept = queue.enqueue(returning("kept", ran))
        abandoned.cancel()

        limiter.allowed = True
        assert await kept == "kept"
        assert ran == ["kept"]
        assert limiter.recorded == 1

    def test_invalid_poll_interval(self):
        with pytest.raises(ValueError):
            RequestQueue(SwitchLimiter(), poll_interval=0)


class TestLifecycle:
    """Clearing and closing."""

    @pytest.mark.asyncio
    async def test_clear_fails_pending(self):
        queue = RequestQueue(SwitchLimiter(allowed=False), poll_interval=0.01)
        futures = [queue.enqueue(returning(i)) for i in range(3)]

        assert queue.clear() == 3
        for future in futures:
            with pytest.raises(QueueClearedError):
                await future
        assert len(queue) == 0
        await queue.aclose()

    @pytest.mark.asyncio
    async def test_aclose_stops_drain_task(self):
        queue = RequestQueue(SwitchLimiter(allowed=False), poll_interval=0.01)
        future = queue.enqueue(returning("never"))
        await asyncio.sleep(0.02)
        assert queue.is_draining

        await queue.aclose()

        assert not queue.is_draining
        with pytest.raises(QueueClearedError):
            await future

    @pytest.mark.asyncio
    async def test_drain_restarts_after_going_idle(self):
        queue = RequestQueue(SwitchLimiter(), poll_interval=0.01)
        assert await queue.enqueue(returning(1)) == 1
        await asyncio.sleep(0)
        assert not queue.is_draining
        assert await queue.enqueue(returning(2)) == 2

    @pytest.mark.asyncio
    async def test_depth_gauge(self, metrics):
        queue = RequestQueue(
            SwitchLimiter(allowed=False), poll_interval=0.01, metrics_collector=metrics
        )
        queue.enqueue(returning(1))
        queue.enqueue(returning(2))
        assert metrics.get_gauge(QUEUE_DEPTH) == 2.0

        queue.clear()
        assert metrics.get_gauge(QUEUE_DEPTH) == 0.0
        await queue.aclose()
