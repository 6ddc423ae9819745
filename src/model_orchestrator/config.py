# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Configuration for the Model Request Orchestrator

This module provides configuration classes for retries, per-request
behavior, and the orchestrator as a whole. All durations are in seconds.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, cast

from .exceptions import ConfigurationError

ENV_PREFIX = "MODEL_ORCHESTRATOR_"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy for a single request.

    Delays follow ``min(base_delay * backoff_multiplier ** attempt, max_delay)``
    plus up to ``jitter_ratio`` of that delay in random jitter.
    """

    max_attempts: int = 3
    """Total invocations allowed, including the first one."""

    base_delay: float = 1.0
    """Delay before the first retry in seconds."""

    max_delay: float = 10.0
    """Upper bound for the exponential part of the delay in seconds."""

    backoff_multiplier: float = 2.0
    """Growth factor applied per attempt."""

    jitter_ratio: float = 0.3
    """Maximum jitter as a fraction of the computed delay."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ConfigurationError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ConfigurationError("max_delay must be >= base_delay")
        if self.backoff_multiplier <= 1:
            raise ConfigurationError("backoff_multiplier must be greater than 1")
        if not 0 <= self.jitter_ratio <= 1.0:
            raise ConfigurationError("jitter_ratio must be between 0 and 1.0")

    def merged(self, **overrides: Any) -> RetryPolicy:
        """Return a copy with the given fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown retry policy fields: {', '.join(sorted(unknown))}"
            )
        return replace(self, **overrides)


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(frozen=True)
class RequestConfig:
    """
    Per-request pipeline options.

    ``retry`` may be a full RetryPolicy or a partial mapping of its fields,
    which is merged over the default policy.
    """

    retry: RetryPolicy | Mapping[str, Any] = DEFAULT_RETRY_POLICY
    """Retry policy (or partial override) for this request."""

    timeout: float | None = 30.0
    """Deadline for each attempt in seconds. None disables the guard."""

    cancel_on_timeout: bool = True
    """Cancel an attempt that misses its deadline instead of abandoning it."""

    cache: bool = False
    """Store and reuse successful results under the request's cache key."""

    cache_ttl: float = 300.0
    """How long a cached result stays valid in seconds."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.retry, RetryPolicy):
            object.__setattr__(
                self, "retry", DEFAULT_RETRY_POLICY.merged(**dict(self.retry))
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if self.cache_ttl <= 0:
            raise ConfigurationError("cache_ttl must be positive")

    @property
    def retry_policy(self) -> RetryPolicy:
        """The resolved retry policy."""
        return cast(RetryPolicy, self.retry)


@dataclass
class OrchestratorConfig:
    """
    Configuration for the request orchestrator.

    One instance configures the rate limiter, request queue, default request
    pipeline, and batch defaults of a single RequestOrchestrator.
    """

    # === Rate Limiting ===

    requests_per_minute: int = 60
    """Maximum calls started within any trailing 60 seconds."""

    requests_per_hour: int = 1000
    """Maximum calls started within any trailing hour."""

    queue_poll_interval: float = 1.0
    """How often a rate-limited queue rechecks the limiter, in seconds."""

    # === Request Pipeline ===

    default_request: RequestConfig = field(default_factory=RequestConfig)
    """Pipeline options used when a call does not supply its own."""

    # === Fallback Routing ===

    max_fallback_models: int | None = None
    """Cap on models tried per generation. None means the registry size."""

    # === Batch Processing ===

    default_concurrency: int = 3
    """Concurrency used by batch runs that do not specify one."""

    # === Metrics and Monitoring ===

    metrics_enabled: bool = True
    """Enable metrics collection."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.requests_per_minute < 1:
            raise ConfigurationError("requests_per_minute must be at least 1")
        if self.requests_per_hour < 1:
            raise ConfigurationError("requests_per_hour must be at least 1")
        if self.queue_poll_interval <= 0:
            raise ConfigurationError("queue_poll_interval must be positive")
        if self.default_concurrency < 1:
            raise ConfigurationError("default_concurrency must be at least 1")
        if self.max_fallback_models is not None and self.max_fallback_models < 1:
            raise ConfigurationError("max_fallback_models must be at least 1")

    @classmethod
    def from_env(cls) -> OrchestratorConfig:
        """
        Build a configuration from ``MODEL_ORCHESTRATOR_*`` environment variables.

        Recognized variables: REQUESTS_PER_MINUTE, REQUESTS_PER_HOUR,
        QUEUE_POLL_INTERVAL, TIMEOUT, MAX_ATTEMPTS, CACHE_TTL, CONCURRENCY,
        MAX_FALLBACK_MODELS, METRICS_ENABLED. Unset variables keep defaults.

        Raises:
            ConfigurationError: If a variable cannot be parsed or is out of range
        """
        from .settings import load_settings

        return load_settings().to_config()


__all__ = [
    "DEFAULT_RETRY_POLICY",
    "ENV_PREFIX",
    "OrchestratorConfig",
    "RequestConfig",
    "RetryPolicy",
]
