# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Fallback routing across models.

The router tries the resolved primary model first. When it fails with a
model-unavailable error (missing, overloaded or out of quota), the fallback
models are tried in order until one succeeds. Every model that failed is
reported back to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..classification import classify_error, is_model_unavailable
from ..config import RequestConfig
from ..exceptions import AllModelsFailedError, NoModelAvailableError
from ..observability.constants import FALLBACKS_TOTAL, GENERATIONS_FAILED_TOTAL
from ..observability.protocols import MetricsCollectorProtocol
from .models import ModelRequirements, TaskCategory
from .selector import ModelSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    """
    A generation task to route to a model.

    Attributes:
        task: Task category, used to pick the primary model
        payload: Provider payload (prompt, messages, options)
        preferred_model: Model to try first if it is registered
        require_structured_output: Only start on a model with structured output
        request_config: Per-request pipeline options (retry, timeout, cache)
    """

    task: TaskCategory
    payload: Any
    preferred_model: str | None = None
    require_structured_output: bool = False
    request_config: RequestConfig | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "task", TaskCategory(self.task))


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of a routed generation.

    Attributes:
        response: Whatever the model call returned
        model_used: Model that produced the response
        fallbacks_attempted: Models that failed before ``model_used``, in order
    """

    response: Any
    model_used: str
    fallbacks_attempted: list[str] = field(default_factory=list)


ModelExecutor = Callable[[str, GenerationRequest], Awaitable[Any]]
"""Runs one request against one named model."""


class FallbackRouter:
    """
    Routes a GenerationRequest through the primary model and its fallbacks.

    Only model-unavailable errors move the request on to the next model;
    any other error propagates unchanged. Models missing from the registry
    are skipped without being counted, models already tried are skipped
    (fallback lists may form cycles), and no more than ``max_models``
    models are called per request.

    Example:
        >>> router = FallbackRouter(selector, execute=call_model)
        >>> result = await router.generate(GenerationRequest(task="chat_assistant", payload=p))
        >>> result.model_used, result.fallbacks_attempted
        ('gpt-4o-mini', ['gpt-4o-mini-2024-07-18'])
    """

    def __init__(
        self,
        selector: ModelSelector,
        execute: ModelExecutor,
        max_models: int | None = None,
        metrics_collector: MetricsCollectorProtocol | None = None,
    ) -> None:
        """
        Initialize the router.

        Args:
            selector: Resolves primary and fallback models
            execute: Coroutine function ``(model_name, request) -> response``
            max_models: Cap on models called per request (default: registry size)
            metrics_collector: Optional collector for fallback metrics
        """
        if max_models is not None and max_models < 1:
            raise ValueError("max_models must be at least 1")

        self.selector = selector
        self.execute = execute
        self.max_models = max_models
        self._metrics_collector = metrics_collector

    @property
    def model_limit(self) -> int:
        """Maximum models called for a single request."""
        if self.max_models is not None:
            return self.max_models
        return max(1, len(self.selector.registry))

    def candidate_models(self, request: GenerationRequest) -> list[str]:
        """
        Primary model followed by its fallbacks, in try order.

        With ``require_structured_output`` every fallback must support it too.
        """
        requirements = None
        if request.require_structured_output:
            requirements = ModelRequirements(text=True, structured_output=True)

        primary = self.selector.resolve_primary_model(
            request.task, request.preferred_model, requirements
        )
        fallbacks = self.selector.resolve_fallbacks(primary, request.task, requirements)
        return [primary, *fallbacks]

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Run the request on the first model that succeeds.

        Returns:
            GenerationResult naming the model used and the models that failed

        Raises:
            AllModelsFailedError: Every candidate failed as unavailable
            Exception: The first error that does not mean "model unavailable"
        """
        candidates = self.candidate_models(request)
        primary = next(iter(candidates), None)
        registry = self.selector.registry
        attempted: list[str] = []
        last_error: Exception | None = None

        for model in candidates:
            if len(attempted) >= self.model_limit:
                logger.warning(
                    f"Stopping fallbacks for {request.task.value} after "
                    f"{len(attempted)} models"
                )
                break
            if model in attempted:
                continue
            # The primary is always attempted; an unknown primary fails in the call
            if model != primary and not registry.is_available(model):
                logger.debug(f"Skipping unregistered fallback model {model}")
                continue

            if attempted:
                self._inc(FALLBACKS_TOTAL, {"model": model})
            logger.debug(f"Attempting {request.task.value} with model {model}")

            try:
                response = await self.execute(model, request)
            except Exception as e:
                if not is_model_unavailable(e):
                    logger.warning(
                        f"Model {model} failed ({classify_error(e).value}), "
                        f"not falling back: {e}"
                    )
                    raise
                logger.warning(f"Model {model} unavailable: {e}")
                attempted.append(model)
                last_error = e
                continue

            if attempted:
                logger.info(
                    f"Fallback model {model} succeeded after {', '.join(attempted)}"
                )
            return GenerationResult(
                response=response, model_used=model, fallbacks_attempted=attempted
            )

        if last_error is None:
            raise NoModelAvailableError(request.task.value, "no candidate model was tried")
        logger.error(
            f"All models failed for {request.task.value}. "
            f"Attempted: {', '.join(attempted)}"
        )
        self._inc(GENERATIONS_FAILED_TOTAL, {"task": request.task.value})
        raise AllModelsFailedError(attempted, last_error) from last_error

    def _inc(self, name: str, labels: dict[str, str]) -> None:
        if self._metrics_collector is not None:
            self._metrics_collector.inc_counter(name, labels=labels)


__all__ = [
    "FallbackRouter",
    "GenerationRequest",
    "GenerationResult",
    "ModelExecutor",
]
