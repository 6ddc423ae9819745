# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Human-readable messages for orchestration failures."""

from __future__ import annotations

from .classification import error_status
from .exceptions import AllModelsFailedError, ErrorKind, ModelCallError

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


def format_error_message(error: BaseException | None) -> str:
    """
    Turn a failure into a message suitable for showing to an end user.

    Args:
        error: The exception raised by the orchestrator (or None)

    Returns:
        A short message keyed by the error's status or kind
    """
    if error is None:
        return DEFAULT_ERROR_MESSAGE

    if isinstance(error, AllModelsFailedError):
        models = ", ".join(error.attempted_models)
        return f"All models are currently unavailable ({models}). Please try again later."

    if isinstance(error, TimeoutError):
        return "The request timed out. Please try again."

    message = str(error)
    status = error_status(error)

    if status == 401:
        return "Invalid API key. Please check your API key configuration."
    if status == 402:
        return "Insufficient credits. Please check your account billing."
    if status == 429:
        return "Rate limit exceeded. Please wait a moment before trying again."
    if status is not None and status >= 500:
        return "Server error. Please try again later."
    if status == 400:
        return message or "Invalid request. Please check your input."

    if isinstance(error, ModelCallError) and error.kind is ErrorKind.NETWORK:
        return "Network error. Please check your connection and try again."

    return message or DEFAULT_ERROR_MESSAGE


__all__ = ["DEFAULT_ERROR_MESSAGE", "format_error_message"]
