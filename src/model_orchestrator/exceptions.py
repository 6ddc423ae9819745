# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the model request orchestrator.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from OrchestratorError, making it easy to catch
all orchestration-related exceptions with a single except clause.

Model call failures are represented by ModelCallError, a tagged error that
carries an explicit ErrorKind and an optional HTTP-like status. Retry and
fallback decisions pattern-match on the kind instead of probing arbitrary
attributes of foreign exceptions (see classification.classify_error).
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Classification of a failed model call.

    - NETWORK: Connectivity failures (DNS, reset connections, refused sockets).
    - RATE_LIMITED: The provider answered 429.
    - SERVER_ERROR: The provider answered with a 5xx status.
    - CLIENT_ERROR: Any other 4xx status. Never retried.
    - TIMEOUT: The attempt exceeded its deadline.
    - MODEL_UNAVAILABLE: The model is missing, overloaded, or out of quota.
    - UNKNOWN: Nothing in the error identifies its cause.
    """

    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    TIMEOUT = "timeout"
    MODEL_UNAVAILABLE = "model_unavailable"
    UNKNOWN = "unknown"


class OrchestratorError(Exception):
    """Base exception for all orchestrator errors.

    This is the root exception class for the model request orchestrator.
    Catch this exception to handle any error originating from the library.

    Example:
        try:
            await orchestrator.generate_with_fallback(request)
        except OrchestratorError as e:
            logger.error(f"Generation failed: {e}")
    """

    pass


class ConfigurationError(OrchestratorError, ValueError):
    """Raised when configuration is invalid.

    Common causes include:
    - Non-positive limits, timeouts, or TTLs
    - A backoff multiplier that does not grow the delay
    - Enabling response caching without supplying a cache key
    """

    pass


class RegistryError(OrchestratorError):
    """Raised when a model registry cannot be loaded or is inconsistent."""

    pass


class ModelCallError(OrchestratorError):
    """Tagged error raised by (or adapted from) a model call.

    Attributes:
        kind: The ErrorKind used for retry and fallback decisions.
        status: Optional HTTP-like status code reported by the provider.
        model: Name of the model that produced the error, if known.

    Example:
        raise ModelCallError.from_status(503, "model overloaded", model="gpt-4o")
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status: int | None = None,
        model: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.model = model

    @classmethod
    def from_status(
        cls, status: int, message: str = "", model: str | None = None
    ) -> "ModelCallError":
        """Build an error whose kind is derived from an HTTP-like status."""
        if status == 429:
            kind = ErrorKind.RATE_LIMITED
        elif status in (404, 503):
            kind = ErrorKind.MODEL_UNAVAILABLE
        elif 500 <= status < 600:
            kind = ErrorKind.SERVER_ERROR
        elif 400 <= status < 500:
            kind = ErrorKind.CLIENT_ERROR
        else:
            kind = ErrorKind.UNKNOWN
        return cls(message or f"Model call failed with status {status}", kind, status, model)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self)!r}, kind={self.kind.value}, "
            f"status={self.status}, model={self.model!r})"
        )


class RequestTimeoutError(OrchestratorError, TimeoutError):
    """Raised by the timeout guard when an attempt misses its deadline.

    Attributes:
        timeout: The configured deadline in seconds.
    """

    def __init__(self, timeout: float):
        super().__init__(f"Request timeout after {timeout:g}s")
        self.timeout = timeout


class AllModelsFailedError(OrchestratorError):
    """Raised when the primary model and every fallback have failed.

    Attributes:
        attempted_models: Every model that was called, in call order.
        last_error: The error raised by the last model attempted.
    """

    def __init__(self, attempted_models: list[str], last_error: BaseException):
        super().__init__(
            f"All models failed. Attempted: {', '.join(attempted_models)}. "
            f"Last error: {last_error}"
        )
        self.attempted_models = list(attempted_models)
        self.last_error = last_error


class NoModelAvailableError(OrchestratorError):
    """Raised when no registered model can serve a task."""

    def __init__(self, task: str, detail: str | None = None):
        message = f"No available model for task '{task}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.task = task


class QueueClearedError(OrchestratorError):
    """Raised into queued requests that were dropped before they could run."""

    pass


__all__ = [
    "AllModelsFailedError",
    "ConfigurationError",
    "ErrorKind",
    "ModelCallError",
    "NoModelAvailableError",
    "OrchestratorError",
    "QueueClearedError",
    "RegistryError",
    "RequestTimeoutError",
]
