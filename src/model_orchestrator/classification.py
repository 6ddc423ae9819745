# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Error classification for retry and fallback decisions.

Model calls are made through third-party SDKs whose exceptions carry their
status in different places (``status``, ``status_code``, a nested
``error.code``) or not at all. ``classify_error`` is the single adapter that
turns any of them into an ``ErrorKind``; everything else in the library
matches on the kind.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

from .exceptions import ErrorKind, ModelCallError

# Statuses that mean "this model cannot serve you right now, try another one"
MODEL_UNAVAILABLE_STATUSES = frozenset({404, 429, 503})

# Message fragments providers use for overload, quota, and unknown-model errors
MODEL_UNAVAILABLE_PATTERN = re.compile(r"overloaded|quota|not found", re.IGNORECASE)

# Exception type names used by HTTP clients for connectivity failures
_NETWORK_ERROR_NAMES = frozenset(
    {
        "networkerror",
        "connecterror",
        "connectionerror",
        "apiconnectionerror",
        "clientconnectionerror",
        "serverdisconnectederror",
        "readerror",
        "remoteprotocolerror",
    }
)


def _coerce_status(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def error_status(error: BaseException) -> int | None:
    """
    Extract an HTTP-like status code from an error.

    Looks at ``status``, ``status_code``, and a nested ``error.code`` (the
    shape some provider SDKs use for JSON error bodies).

    Args:
        error: Any exception raised by a model call

    Returns:
        The status code, or None if the error does not carry one
    """
    for attr in ("status", "status_code"):
        status = _coerce_status(getattr(error, attr, None))
        if status is not None:
            return status

    body = getattr(error, "error", None)
    if isinstance(body, dict):
        return _coerce_status(body.get("code"))
    if body is not None:
        return _coerce_status(getattr(body, "code", None))
    return None


def _kind_from_status(status: int) -> ErrorKind:
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if 500 <= status < 600:
        return ErrorKind.SERVER_ERROR
    if status == 404:
        return ErrorKind.MODEL_UNAVAILABLE
    if 400 <= status < 500:
        return ErrorKind.CLIENT_ERROR
    return ErrorKind.UNKNOWN


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify an exception into an ErrorKind.

    Tagged ModelCallErrors keep their own kind. Foreign exceptions are
    classified by status first, then by type (timeouts and connectivity
    errors), then by message text.

    Args:
        error: The exception to classify

    Returns:
        The ErrorKind for the exception
    """
    if isinstance(error, ModelCallError) and error.kind is not ErrorKind.UNKNOWN:
        return error.kind

    status = error_status(error)
    if status is not None:
        return _kind_from_status(status)

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorKind.TIMEOUT

    if isinstance(error, (ConnectionError, OSError)):
        return ErrorKind.NETWORK

    if type(error).__name__.lower() in _NETWORK_ERROR_NAMES:
        return ErrorKind.NETWORK

    if MODEL_UNAVAILABLE_PATTERN.search(str(error)):
        return ErrorKind.MODEL_UNAVAILABLE

    return ErrorKind.UNKNOWN


def is_retryable(error: BaseException) -> bool:
    """
    Check if a failed attempt should be retried.

    Network errors, timeouts, 429 responses, and any 5xx response are
    retryable. Everything else (including 4xx other than 429) is not.
    """
    status = error_status(error)
    if status is not None:
        return status == 429 or 500 <= status < 600

    return classify_error(error) in (
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMITED,
        ErrorKind.SERVER_ERROR,
    )


def is_model_unavailable(error: BaseException) -> bool:
    """
    Check if an error means the model should be swapped for a fallback.

    True for statuses 404, 429 and 503, for errors tagged MODEL_UNAVAILABLE,
    and for messages mentioning overload, quota, or a model not being found.
    """
    status = error_status(error)
    if status in MODEL_UNAVAILABLE_STATUSES:
        return True

    if isinstance(error, ModelCallError) and error.kind is ErrorKind.MODEL_UNAVAILABLE:
        return True

    return bool(MODEL_UNAVAILABLE_PATTERN.search(str(error)))


__all__ = [
    "MODEL_UNAVAILABLE_PATTERN",
    "MODEL_UNAVAILABLE_STATUSES",
    "classify_error",
    "error_status",
    "is_model_unavailable",
    "is_retryable",
]
