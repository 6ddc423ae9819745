# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Deadline enforcement for a single attempt.

``with_timeout`` races an attempt against a timer. By default the losing
attempt is cancelled through asyncio's own cancellation. With
``cancel_pending=False`` the attempt is left running in the background and
may still complete its side effects after the caller has received the
timeout. Either way the timeout is raised at the deadline without waiting
for the attempt to finish, and its eventual outcome is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..exceptions import RequestTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Attempts that missed their deadline, kept referenced until they finish
_detached_attempts: set["asyncio.Task[object]"] = set()


def _discard_outcome(task: "asyncio.Task[object]") -> None:
    _detached_attempts.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned attempt finished with {type(exc).__name__}: {exc}")


async def with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout: float | None,
    *,
    cancel_pending: bool = True,
) -> T:
    """
    Run ``operation()`` with a deadline.

    Args:
        operation: Zero-argument coroutine function producing the attempt
        timeout: Deadline in seconds, or None to run without a deadline
        cancel_pending: Cancel the attempt when the deadline passes

    Returns:
        The attempt's result if it finishes in time

    Raises:
        RequestTimeoutError: If the deadline passes first
    """
    if timeout is None:
        return await operation()

    task: asyncio.Task[T] = asyncio.ensure_future(operation())
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    if cancel_pending:
        task.cancel()
    # The caller is not held up by the attempt's cleanup after cancellation
    _detached_attempts.add(task)  # type: ignore[arg-type]
    task.add_done_callback(_discard_outcome)  # type: ignore[arg-type]

    logger.warning(f"Attempt exceeded its {timeout:g}s deadline")
    raise RequestTimeoutError(timeout)


__all__ = ["with_timeout"]
