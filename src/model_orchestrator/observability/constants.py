# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `model_orch_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    To prevent label cardinality explosion, use only:
    - `model` - Model name (categorical: gpt-4o, gpt-4o-mini)
    - `task` - Task category (enum: bulk_content, chat_assistant, ...)
    - `reason` - Failure reason (ErrorKind value: timeout, rate_limited, ...)

    NEVER use request payloads, cache keys, or timestamps as label values.
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "model_orch"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Request Pipeline Metrics (orchestrator.py)
# =============================================================================

REQUESTS_TOTAL = f"{METRIC_PREFIX}_requests_total"
"""Total requests submitted to the pipeline."""

REQUESTS_COMPLETED_TOTAL = f"{METRIC_PREFIX}_requests_completed_total"
"""Total requests that returned a result (including cache hits)."""

REQUESTS_FAILED_TOTAL = f"{METRIC_PREFIX}_requests_failed_total"
"""Total requests that raised, labelled by failure reason."""

REQUESTS_QUEUED_TOTAL = f"{METRIC_PREFIX}_requests_queued_total"
"""Total requests deferred to the queue by the rate limiter."""

RETRIES_TOTAL = f"{METRIC_PREFIX}_retries_total"
"""Total retry attempts scheduled by the backoff engine."""

REQUEST_TIMEOUTS_TOTAL = f"{METRIC_PREFIX}_request_timeouts_total"
"""Total attempts that missed their deadline."""

REQUEST_LATENCY_SECONDS = f"{METRIC_PREFIX}_request_latency_seconds"
"""End-to-end latency of executed (non-cached) requests."""


# =============================================================================
# Fallback Routing Metrics (routing/router.py)
# =============================================================================

FALLBACKS_TOTAL = f"{METRIC_PREFIX}_fallbacks_total"
"""Total times a generation moved on to a fallback model."""

GENERATIONS_FAILED_TOTAL = f"{METRIC_PREFIX}_generations_failed_total"
"""Total generations where every candidate model failed."""


# =============================================================================
# Cache Metrics (cache/response_cache.py)
# =============================================================================

CACHE_HITS_TOTAL = f"{METRIC_PREFIX}_cache_hits_total"
"""Total response cache hits."""

CACHE_MISSES_TOTAL = f"{METRIC_PREFIX}_cache_misses_total"
"""Total response cache misses (including expired entries)."""

CACHE_EVICTIONS_TOTAL = f"{METRIC_PREFIX}_cache_evictions_total"
"""Total expired entries evicted from the response cache."""


# =============================================================================
# Active State Gauges
# =============================================================================

QUEUE_DEPTH = f"{METRIC_PREFIX}_queue_depth"
"""Requests waiting in the rate-limit queue."""

BATCH_IN_FLIGHT = f"{METRIC_PREFIX}_batch_in_flight"
"""Batch operations currently executing."""


# =============================================================================
# Histogram Buckets
# =============================================================================

LATENCY_BUCKETS: list[float] = [
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
    60.0,
]
"""Buckets for model call latency (seconds). Generation calls are slow."""


__all__ = [
    "BATCH_IN_FLIGHT",
    "CACHE_EVICTIONS_TOTAL",
    "CACHE_HITS_TOTAL",
    "CACHE_MISSES_TOTAL",
    "FALLBACKS_TOTAL",
    "GENERATIONS_FAILED_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "QUEUE_DEPTH",
    "REQUESTS_COMPLETED_TOTAL",
    "REQUESTS_FAILED_TOTAL",
    "REQUESTS_QUEUED_TOTAL",
    "REQUESTS_TOTAL",
    "REQUEST_LATENCY_SECONDS",
    "REQUEST_TIMEOUTS_TOTAL",
    "RETRIES_TOTAL",
]
