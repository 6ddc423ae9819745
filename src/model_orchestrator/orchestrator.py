# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request orchestrator: the single entry point for model requests.

RequestOrchestrator owns one rate limiter, one response cache and one
request queue, and sends every request through the same pipeline:

    cache lookup -> rate limit (or queue) -> retry( timeout( call ) ) -> cache store

``generate_with_fallback`` adds model selection and fallback routing on
top, and the batch methods run many requests with bounded concurrency.
All state lives on the instance; an orchestrator must only be used from
the event loop it runs on.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar, cast

from typing_extensions import Self

from .batch import BatchOrchestrator, BatchResult, Operation, ProgressCallback
from .cache import ResponseCache, make_cache_key
from .classification import classify_error
from .config import OrchestratorConfig, RequestConfig
from .exceptions import ConfigurationError, RequestTimeoutError
from .limiting import SlidingWindowRateLimiter
from .observability.collector import MetricsCollector
from .observability.constants import (
    REQUEST_LATENCY_SECONDS,
    REQUEST_TIMEOUTS_TOTAL,
    REQUESTS_COMPLETED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    REQUESTS_QUEUED_TOTAL,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
)
from .observability.protocols import MetricsCollectorProtocol
from .protocols import ModelCall
from .queue import RequestQueue
from .resilience import execute_with_retry, with_timeout
from .routing import (
    FallbackRouter,
    GenerationRequest,
    GenerationResult,
    ModelDescriptor,
    ModelRegistry,
    ModelSelector,
    TaskCategory,
    TaskModelBinding,
    default_registry,
    default_task_bindings,
)
from .settings import load_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class QueueStatus:
    """Snapshot of the rate limiter and request queue."""

    queue_length: int
    requests_last_minute: int
    requests_last_hour: int


class RequestOrchestrator:
    """
    Rate-limited, cached, retrying execution of model requests.

    Example:
        >>> async with RequestOrchestrator(model_call=call_openai) as orchestrator:
        ...     result = await orchestrator.generate_with_fallback(
        ...         GenerationRequest(task="chat_assistant", payload={"messages": msgs})
        ...     )
        ...     print(result.model_used)
    """

    def __init__(
        self,
        model_call: ModelCall | None = None,
        config: OrchestratorConfig | None = None,
        registry: ModelRegistry | None = None,
        bindings: Mapping[TaskCategory, TaskModelBinding] | None = None,
        metrics_collector: MetricsCollectorProtocol | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            model_call: Coroutine function ``(model_name, payload) -> response``,
                required only for generate_with_fallback
            config: Orchestrator configuration (defaults if omitted)
            registry: Model registry (bundled defaults if omitted)
            bindings: Task to model bindings (bundled defaults if omitted;
                environment overrides are applied by create_orchestrator)
            metrics_collector: Metrics backend; a private MetricsCollector is
                created when omitted and metrics are enabled
        """
        self.config = config if config is not None else OrchestratorConfig()
        self.model_call = model_call

        if metrics_collector is None and self.config.metrics_enabled:
            metrics_collector = MetricsCollector()
        self.metrics_collector = metrics_collector if self.config.metrics_enabled else None

        self.rate_limiter = SlidingWindowRateLimiter(
            requests_per_minute=self.config.requests_per_minute,
            requests_per_hour=self.config.requests_per_hour,
        )
        self.cache = ResponseCache(
            default_ttl=self.config.default_request.cache_ttl,
            metrics_collector=self.metrics_collector,
        )
        self.queue = RequestQueue(
            self.rate_limiter,
            poll_interval=self.config.queue_poll_interval,
            metrics_collector=self.metrics_collector,
        )

        self.selector = ModelSelector(
            registry if registry is not None else default_registry(),
            bindings if bindings is not None else default_task_bindings(),
        )
        self.router = FallbackRouter(
            self.selector,
            self._execute_on_model,
            max_models=self.config.max_fallback_models,
            metrics_collector=self.metrics_collector,
        )
        self.batch = BatchOrchestrator(
            execute=self.make_request, metrics_collector=self.metrics_collector
        )

    @property
    def registry(self) -> ModelRegistry:
        return self.selector.registry

    # === Request pipeline ===

    async def make_request(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RequestConfig | None = None,
        *,
        cache_key: str | None = None,
    ) -> T:
        """
        Execute one operation through the full request pipeline.

        Args:
            operation: Zero-argument coroutine function performing the call
            config: Per-request options (the configured default if omitted)
            cache_key: Key to cache the result under; required when caching

        Returns:
            The operation's result, possibly served from the cache

        Raises:
            ConfigurationError: If caching is enabled without a cache key
            RequestTimeoutError: If the final attempt missed its deadline
            Exception: The operation's last error, unchanged
        """
        config = config if config is not None else self.config.default_request
        if config.cache and cache_key is None:
            raise ConfigurationError("cache_key is required when cache is enabled")

        self._inc(REQUESTS_TOTAL)

        if config.cache:
            hit, value = self.cache.lookup(cache_key)  # type: ignore[arg-type]
            if hit:
                logger.debug(f"Cache hit for {cache_key}")
                self._inc(REQUESTS_COMPLETED_TOTAL)
                return value  # type: ignore[no-any-return]

        async def execute() -> T:
            return await self._execute_with_resilience(operation, config)

        try:
            # Later requests queue behind earlier ones so the queue stays FIFO
            if len(self.queue) > 0 or not self.rate_limiter.can_proceed():
                self._inc(REQUESTS_QUEUED_TOTAL)
                logger.warning(
                    f"Rate limit reached, queueing request "
                    f"(queue length {len(self.queue) + 1})"
                )
                result: T = await self.queue.enqueue(execute)
            else:
                self.rate_limiter.record_call()
                result = await execute()
        except Exception as e:
            self._inc(REQUESTS_FAILED_TOTAL, {"reason": classify_error(e).value})
            raise

        if config.cache:
            self.cache.set(cache_key, result, config.cache_ttl)  # type: ignore[arg-type]
        self._inc(REQUESTS_COMPLETED_TOTAL)
        return result

    async def _execute_with_resilience(
        self, operation: Callable[[], Awaitable[T]], config: RequestConfig
    ) -> T:
        async def attempt() -> T:
            try:
                return await with_timeout(
                    operation, config.timeout, cancel_pending=config.cancel_on_timeout
                )
            except RequestTimeoutError:
                self._inc(REQUEST_TIMEOUTS_TOTAL)
                raise

        def on_retry(error: BaseException, attempt_number: int, delay: float) -> None:
            self._inc(RETRIES_TOTAL, {"reason": classify_error(error).value})

        started = time.perf_counter()
        try:
            return await execute_with_retry(
                attempt, config.retry_policy, on_retry=on_retry
            )
        finally:
            if self.metrics_collector is not None:
                self.metrics_collector.observe_histogram(
                    REQUEST_LATENCY_SECONDS, time.perf_counter() - started
                )

    # === Model routing ===

    async def generate_with_fallback(self, request: GenerationRequest) -> GenerationResult:
        """
        Run a generation on the task's model, falling back when it is unavailable.

        Raises:
            ConfigurationError: If no model_call was configured
            AllModelsFailedError: If every candidate model was unavailable
        """
        if self.model_call is None:
            raise ConfigurationError("generate_with_fallback requires a model_call")
        return await self.router.generate(request)

    async def _execute_on_model(self, model_name: str, request: GenerationRequest) -> Any:
        config = (
            request.request_config
            if request.request_config is not None
            else self.config.default_request
        )
        cache_key = None
        if config.cache:
            cache_key = make_cache_key(request.task.value, request.payload, model_name)

        model_call = cast(ModelCall, self.model_call)

        async def call() -> Any:
            return await model_call(model_name, request.payload)

        return await self.make_request(call, config, cache_key=cache_key)

    def check_model_health(self, model_name: str) -> bool:
        """True if the model is registered and may be routed to."""
        return self.registry.is_available(model_name)

    def model_stats(self, model_name: str) -> ModelDescriptor | None:
        """Registered descriptor of a model, for monitoring."""
        return self.registry.get(model_name)

    # === Batches ===

    async def run_batch(
        self,
        operations: Iterable[Operation],
        concurrency: int | None = None,
        *,
        fail_fast: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> list[BatchResult[Any]]:
        """
        Run operations through make_request with bounded concurrency.

        See BatchOrchestrator.run_batch. ``concurrency`` defaults to
        ``config.default_concurrency``.
        """
        if concurrency is None:
            concurrency = self.config.default_concurrency
        return await self.batch.run_batch(
            operations, concurrency, fail_fast=fail_fast, on_progress=on_progress
        )

    async def run_batch_with_progress(
        self,
        operations: Iterable[Operation],
        on_progress: ProgressCallback,
        concurrency: int | None = None,
    ) -> list[BatchResult[Any]]:
        return await self.run_batch(operations, concurrency, on_progress=on_progress)

    # === Status and lifecycle ===

    def get_queue_status(self) -> QueueStatus:
        return QueueStatus(
            queue_length=len(self.queue),
            requests_last_minute=self.rate_limiter.requests_in_last_minute(),
            requests_last_hour=self.rate_limiter.requests_in_last_hour(),
        )

    def clear_cache(self, prefix: str | None = None) -> int:
        """Drop cached responses (all, or those whose key starts with ``prefix``)."""
        return self.cache.clear(prefix)

    def clear_queue(self) -> int:
        """Fail every queued request with QueueClearedError."""
        return self.queue.clear()

    async def aclose(self) -> None:
        """Stop the queue drain task and fail every queued request."""
        await self.queue.aclose()
        logger.debug("RequestOrchestrator closed")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _inc(self, name: str, labels: dict[str, str] | None = None) -> None:
        if self.metrics_collector is not None:
            self.metrics_collector.inc_counter(name, labels=labels)


def create_orchestrator(
    model_call: ModelCall | None = None,
    config: OrchestratorConfig | None = None,
    registry_path: str | Path | None = None,
    from_env: bool = False,
    **kwargs: Any,
) -> RequestOrchestrator:
    """
    Factory function to create a RequestOrchestrator.

    Args:
        model_call: Coroutine function ``(model_name, payload) -> response``
        config: Orchestrator configuration; wins over ``from_env``
        registry_path: JSON file to load the model registry from
        from_env: Read configuration and per-task model overrides from the
            environment (see load_settings)
        **kwargs: Additional arguments passed to RequestOrchestrator

    Returns:
        Configured RequestOrchestrator instance

    Raises:
        ConfigurationError: If an environment variable is invalid
        RegistryError: If the registry file cannot be loaded
    """
    settings = load_settings() if from_env else None
    if config is None and settings is not None:
        config = settings.to_config()
    if registry_path is not None and "registry" not in kwargs:
        kwargs["registry"] = ModelRegistry.from_json_file(registry_path)
    if "bindings" not in kwargs:
        overrides = settings.task_model_overrides() if settings is not None else None
        kwargs["bindings"] = default_task_bindings(overrides)

    return RequestOrchestrator(model_call=model_call, config=config, **kwargs)


__all__ = ["QueueStatus", "RequestOrchestrator", "create_orchestrator"]
