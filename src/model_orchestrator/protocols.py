# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol for the model call the orchestrator drives.

Any provider SDK can be plugged in by wrapping it in a coroutine function
with this shape. Errors should carry a ``status`` (or ``status_code``)
attribute where the provider reports one; ModelCallError does.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ModelCall(Protocol):
    """
    Coroutine function that sends one payload to one model.

    Example:
        >>> async def call_openai(model_name: str, payload: Any) -> Any:
        ...     return await client.chat.completions.create(model=model_name, **payload)
        >>> orchestrator = RequestOrchestrator(model_call=call_openai)
    """

    async def __call__(self, model_name: str, payload: Any) -> Any:
        """
        Call ``model_name`` with ``payload``.

        Args:
            model_name: Registered model name
            payload: Provider-specific request body

        Returns:
            The provider response
        """
        ...


__all__ = ["ModelCall"]
