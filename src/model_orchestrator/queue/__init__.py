# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Deferred execution of rate-limited requests.

- RequestQueue: FIFO buffer drained by a single task when the limiter permits
- QueuedOperation: A deferred operation and the future awaiting its outcome
"""

from .request_queue import DEFAULT_POLL_INTERVAL, QueuedOperation, RequestQueue

__all__ = ["DEFAULT_POLL_INTERVAL", "QueuedOperation", "RequestQueue"]
