# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector backed by prometheus_client with a dict snapshot.

Features:
    1. Thread-safe counter/gauge/histogram operations
    2. Prometheus metrics registered on a per-collector CollectorRegistry
    3. Dict snapshot for JSON export and assertions in tests
    4. Label cardinality protection (max 1000 unique combinations per metric)
    5. Optional HTTP server for Prometheus scraping

Usage:
    >>> from model_orchestrator.observability import MetricsCollector
    >>> collector = MetricsCollector()
    >>> collector.inc_counter("model_orch_requests_total", labels={"model": "gpt-4o"})
    >>> collector.get_metrics()["counters"]
    {'model_orch_requests_total': {'model=gpt-4o': 1}}
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    start_http_server,
)

from .constants import (
    BATCH_IN_FLIGHT,
    CACHE_EVICTIONS_TOTAL,
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
    FALLBACKS_TOTAL,
    GENERATIONS_FAILED_TOTAL,
    LATENCY_BUCKETS,
    QUEUE_DEPTH,
    REQUEST_LATENCY_SECONDS,
    REQUEST_TIMEOUTS_TOTAL,
    REQUESTS_COMPLETED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    REQUESTS_QUEUED_TOTAL,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """Schema for a metric: type, description, label names, and buckets."""

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


# Pre-defined metrics for the library
METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    # === Request Pipeline ===
    REQUESTS_TOTAL: MetricDefinition(
        REQUESTS_TOTAL, "counter", "Total requests submitted", ()
    ),
    REQUESTS_COMPLETED_TOTAL: MetricDefinition(
        REQUESTS_COMPLETED_TOTAL, "counter", "Total requests completed", ()
    ),
    REQUESTS_FAILED_TOTAL: MetricDefinition(
        REQUESTS_FAILED_TOTAL, "counter", "Total requests failed", ("reason",)
    ),
    REQUESTS_QUEUED_TOTAL: MetricDefinition(
        REQUESTS_QUEUED_TOTAL, "counter", "Total requests deferred to the queue", ()
    ),
    RETRIES_TOTAL: MetricDefinition(
        RETRIES_TOTAL, "counter", "Total retry attempts", ("reason",)
    ),
    REQUEST_TIMEOUTS_TOTAL: MetricDefinition(
        REQUEST_TIMEOUTS_TOTAL, "counter", "Total attempts that timed out", ()
    ),
    REQUEST_LATENCY_SECONDS: MetricDefinition(
        REQUEST_LATENCY_SECONDS,
        "histogram",
        "Latency of executed requests",
        (),
        buckets=LATENCY_BUCKETS,
    ),
    # === Fallback Routing ===
    FALLBACKS_TOTAL: MetricDefinition(
        FALLBACKS_TOTAL, "counter", "Total moves to a fallback model", ("model",)
    ),
    GENERATIONS_FAILED_TOTAL: MetricDefinition(
        GENERATIONS_FAILED_TOTAL,
        "counter",
        "Total generations where every model failed",
        ("task",),
    ),
    # === Cache ===
    CACHE_HITS_TOTAL: MetricDefinition(
        CACHE_HITS_TOTAL, "counter", "Total cache hits", ()
    ),
    CACHE_MISSES_TOTAL: MetricDefinition(
        CACHE_MISSES_TOTAL, "counter", "Total cache misses", ()
    ),
    CACHE_EVICTIONS_TOTAL: MetricDefinition(
        CACHE_EVICTIONS_TOTAL, "counter", "Total cache evictions", ()
    ),
    # === Gauges ===
    QUEUE_DEPTH: MetricDefinition(
        QUEUE_DEPTH, "gauge", "Requests waiting in the rate-limit queue", ()
    ),
    BATCH_IN_FLIGHT: MetricDefinition(
        BATCH_IN_FLIGHT, "gauge", "Batch operations currently executing", ()
    ),
}


class MetricsCollector:
    """
    Metrics collector supporting both dict-based and Prometheus metrics.

    Every collector owns its own CollectorRegistry unless one is passed in,
    so several orchestrators (or tests) can coexist in one process without
    duplicate-registration errors.

    Thread Safety:
        All operations use RLock for thread-safe access.

    Cardinality Protection:
        At most MAX_LABEL_COMBINATIONS unique label combinations are tracked
        per metric; further combinations are dropped with a warning.
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to mirror metrics into Prometheus objects
            registry: Optional CollectorRegistry (a private one is created if None)
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else CollectorRegistry()

        # Dict-based metrics (always available)
        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histograms: dict[str, dict[str, list[float]]] = defaultdict(
            lambda: defaultdict(list)
        )

        self._lock = threading.RLock()

        # Prometheus metric instances (lazy initialized)
        self._prom_metrics: dict[str, Any] = {}

        self._label_combinations: dict[str, set[str]] = defaultdict(set)
        self._server_running = False

        logger.debug(
            f"MetricsCollector initialized "
            f"(prometheus={'enabled' if self._enable_prometheus else 'disabled'})"
        )

    @property
    def registry(self) -> CollectorRegistry:
        """The Prometheus registry holding this collector's metrics."""
        return self._registry

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a stable string key."""
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        """Return True if this label combination may be recorded."""
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {label_key}"
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom(
        self, name: str, metric_type: str, labels: dict[str, str] | None
    ) -> Any | None:
        """Get or create the Prometheus object backing ``name``."""
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name not in self._prom_metrics:
                defn = METRIC_DEFINITIONS.get(name)
                if defn is None or defn.metric_type != metric_type:
                    # Dynamic metric (not pre-defined)
                    defn = MetricDefinition(
                        name,
                        metric_type,
                        f"Dynamic {metric_type}: {name}",
                        tuple(sorted(labels)) if labels else (),
                    )
                try:
                    if metric_type == "counter":
                        metric: Any = Counter(
                            name,
                            defn.description,
                            list(defn.label_names),
                            registry=self._registry,
                        )
                    elif metric_type == "gauge":
                        metric = Gauge(
                            name,
                            defn.description,
                            list(defn.label_names),
                            registry=self._registry,
                        )
                    else:
                        metric = Histogram(
                            name,
                            defn.description,
                            list(defn.label_names),
                            buckets=defn.buckets or LATENCY_BUCKETS,
                            registry=self._registry,
                        )
                except ValueError as e:
                    logger.warning(f"Failed to create Prometheus {metric_type} {name}: {e}")
                    return None
                self._prom_metrics[name] = metric

        return self._prom_metrics[name]

    def _apply_prom(
        self,
        name: str,
        metric_type: str,
        labels: dict[str, str] | None,
        method: str,
        value: float,
    ) -> None:
        prom_metric = self._get_or_create_prom(name, metric_type, labels)
        if prom_metric is None:
            return
        try:
            target = prom_metric.labels(**labels) if labels else prom_metric
            getattr(target, method)(value)
        except ValueError as e:
            logger.debug(f"Prometheus {metric_type} update failed for {name}: {e}")

    # === Counter Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

        self._apply_prom(name, "counter", labels, "inc", value)

    # === Gauge Operations ===

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to a specific value."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] = value

        self._apply_prom(name, "gauge", labels, "set", value)

    def inc_gauge(
        self,
        name: str,
        value: float = 1.0,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Increment a gauge metric."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] += value

        self._apply_prom(name, "gauge", labels, "inc", value)

    def dec_gauge(
        self,
        name: str,
        value: float = 1.0,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Decrement a gauge metric."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] -= value

        self._apply_prom(name, "gauge", labels, "dec", value)

    # === Histogram Operations ===

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            observations = self._histograms[name][label_key]
            observations.append(value)
            # Keep only recent observations to prevent memory growth
            if len(observations) > 10000:
                self._histograms[name][label_key] = observations[-5000:]

        self._apply_prom(name, "histogram", labels, "observe", value)

    # === Snapshot Operations ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns a dict suitable for JSON serialization with structure:
        {
            "counters": {"metric_name": {"label_key": value, ...}, ...},
            "gauges": {"metric_name": {"label_key": value, ...}, ...},
            "histograms": {"metric_name": {"label_key": {...}, ...}, ...}
        }
        """
        with self._lock:
            counters = {
                name: dict(label_values)
                for name, label_values in self._counters.items()
            }
            gauges = {
                name: dict(label_values) for name, label_values in self._gauges.items()
            }

            histograms: dict[str, dict[str, dict[str, Any]]] = {}
            for name, label_values in self._histograms.items():
                histograms[name] = {}
                for label_key, observations in label_values.items():
                    if observations:
                        histograms[name][label_key] = {
                            "count": len(observations),
                            "sum": sum(observations),
                            "avg": sum(observations) / len(observations),
                            "min": min(observations),
                            "max": max(observations),
                        }

        return {
            "counters": counters,
            "gauges": gauges,
            "histograms": histograms,
        }

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current value of one counter (0 if never incremented)."""
        with self._lock:
            return self._counters.get(name, {}).get(self._labels_to_key(labels), 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Current value of one gauge (0.0 if never set)."""
        with self._lock:
            return self._gauges.get(name, {}).get(self._labels_to_key(labels), 0.0)

    def export_text(self) -> bytes:
        """Render the Prometheus text exposition format for this registry."""
        return bytes(generate_latest(self._registry))

    # === Lifecycle ===

    def reset(self) -> None:
        """Reset all dict-based metrics to zero."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._label_combinations.clear()

        logger.debug("Metrics collector reset")

    # === Prometheus HTTP Server ===

    def start_http_server(self, host: str = "127.0.0.1", port: int = 9090) -> bool:
        """
        Start the Prometheus HTTP server for metrics scraping.

        Args:
            host: Host to bind to (default: 127.0.0.1 for localhost only)
            port: Port to bind to

        Returns:
            True if the server is running, False if it could not be started
        """
        if self._server_running:
            logger.warning("Prometheus server already running")
            return True

        try:
            # start_http_server runs in a daemon thread
            start_http_server(port, addr=host, registry=self._registry)
        except OSError as e:
            logger.error(f"Failed to start Prometheus server: {e}")
            return False

        self._server_running = True
        logger.info(f"Prometheus metrics server started on {host}:{port}")
        return True

    @property
    def prometheus_enabled(self) -> bool:
        """Check if Prometheus metrics are enabled."""
        return self._enable_prometheus

    @property
    def server_running(self) -> bool:
        """Check if the Prometheus HTTP server is running."""
        return self._server_running


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "MetricsCollector",
]
