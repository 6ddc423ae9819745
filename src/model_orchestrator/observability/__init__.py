# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the Model Request Orchestrator.

Classes:
    MetricsCollector: Dict snapshot plus prometheus_client metrics.

Protocols:
    MetricsCollectorProtocol: Protocol for metrics collection backends.

Constants:
    Metric name constants from the constants module.
"""

from .collector import METRIC_DEFINITIONS, MetricDefinition, MetricsCollector
from .constants import (
    BATCH_IN_FLIGHT,
    CACHE_EVICTIONS_TOTAL,
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
    FALLBACKS_TOTAL,
    GENERATIONS_FAILED_TOTAL,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
    QUEUE_DEPTH,
    REQUEST_LATENCY_SECONDS,
    REQUEST_TIMEOUTS_TOTAL,
    REQUESTS_COMPLETED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    REQUESTS_QUEUED_TOTAL,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
)
from .protocols import MetricsCollectorProtocol

__all__ = [
    "BATCH_IN_FLIGHT",
    "CACHE_EVICTIONS_TOTAL",
    "CACHE_HITS_TOTAL",
    "CACHE_MISSES_TOTAL",
    "FALLBACKS_TOTAL",
    "GENERATIONS_FAILED_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "QUEUE_DEPTH",
    "REQUESTS_COMPLETED_TOTAL",
    "REQUESTS_FAILED_TOTAL",
    "REQUESTS_QUEUED_TOTAL",
    "REQUESTS_TOTAL",
    "REQUEST_LATENCY_SECONDS",
    "REQUEST_TIMEOUTS_TOTAL",
    "RETRIES_TOTAL",
    "MetricDefinition",
    "MetricsCollector",
    "MetricsCollectorProtocol",
]
