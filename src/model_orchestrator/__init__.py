# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Model Request Orchestrator - Reliable calls to generative model providers.

This library sends requests to generative models under provider rate limits,
quota errors and transient failures.

Key Features:
    - Sliding-window rate limiting (per minute and per hour) with a FIFO queue
    - Exponential backoff with jitter for retryable errors
    - Per-attempt timeouts
    - TTL response cache with content-addressed keys
    - Task-based model selection with fallback across models
    - Batch execution with bounded concurrency
    - Prometheus metrics

Quick Start:
    >>> from model_orchestrator import GenerationRequest, create_orchestrator
    >>>
    >>> async def call_model(model_name, payload):
    ...     return await client.chat.completions.create(model=model_name, **payload)
    >>>
    >>> orchestrator = create_orchestrator(model_call=call_model, from_env=True)
    >>> async with orchestrator:
    ...     result = await orchestrator.generate_with_fallback(
    ...         GenerationRequest(task="bulk_content", payload={"messages": messages})
    ...     )

Main Exports:
    - RequestOrchestrator, create_orchestrator: The request pipeline facade
    - OrchestratorConfig, RequestConfig, RetryPolicy: Configuration
    - OrchestratorSettings, load_settings: Configuration from environment variables
    - ModelRegistry, ModelSelector, FallbackRouter: Model routing
    - BatchOrchestrator: Bounded-concurrency batches
    - MetricsCollector: Metrics collection and Prometheus export

Version: 1.0.0
"""

__version__ = "1.0.0"

from .batch import BatchOrchestrator, BatchResult, BatchSummary
from .cache import ResponseCache, make_cache_key
from .classification import classify_error, error_status, is_model_unavailable, is_retryable
from .config import DEFAULT_RETRY_POLICY, OrchestratorConfig, RequestConfig, RetryPolicy
from .exceptions import (
    AllModelsFailedError,
    ConfigurationError,
    ErrorKind,
    ModelCallError,
    NoModelAvailableError,
    OrchestratorError,
    QueueClearedError,
    RegistryError,
    RequestTimeoutError,
)
from .formatting import format_error_message
from .limiting import SlidingWindowRateLimiter
from .observability import MetricsCollector, MetricsCollectorProtocol
from .orchestrator import QueueStatus, RequestOrchestrator, create_orchestrator
from .protocols import ModelCall
from .queue import RequestQueue
from .resilience import compute_backoff_delay, execute_with_retry, with_timeout
from .routing import (
    CostTier,
    FallbackRouter,
    GenerationRequest,
    GenerationResult,
    ModelDescriptor,
    ModelRegistry,
    ModelRequirements,
    ModelSelector,
    TaskCategory,
    TaskModelBinding,
    default_registry,
    default_task_bindings,
)
from .settings import OrchestratorSettings, load_settings

__all__ = [
    "DEFAULT_RETRY_POLICY",
    # Exceptions
    "AllModelsFailedError",
    # Batches
    "BatchOrchestrator",
    "BatchResult",
    "BatchSummary",
    "ConfigurationError",
    # Routing
    "CostTier",
    "ErrorKind",
    "FallbackRouter",
    "GenerationRequest",
    "GenerationResult",
    # Protocols
    "ModelCall",
    "ModelCallError",
    "ModelDescriptor",
    "ModelRegistry",
    "ModelRequirements",
    "ModelSelector",
    # Observability
    "MetricsCollector",
    "MetricsCollectorProtocol",
    "NoModelAvailableError",
    # Configuration
    "OrchestratorConfig",
    "OrchestratorError",
    "OrchestratorSettings",
    "QueueClearedError",
    "QueueStatus",
    "RegistryError",
    "RequestConfig",
    # Orchestrator
    "RequestOrchestrator",
    "RequestQueue",
    "RequestTimeoutError",
    # Building blocks
    "ResponseCache",
    "RetryPolicy",
    "SlidingWindowRateLimiter",
    "TaskCategory",
    "TaskModelBinding",
    "classify_error",
    "compute_backoff_delay",
    "create_orchestrator",
    "default_registry",
    "default_task_bindings",
    "error_status",
    "execute_with_retry",
    "format_error_message",
    "is_model_unavailable",
    "is_retryable",
    "load_settings",
    "make_cache_key",
    "with_timeout",
]
