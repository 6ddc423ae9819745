# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Bundled model table and task bindings.

``default_registry()`` returns the models the content tool ships with and
``default_task_bindings()`` maps each task category to its primary model.
Primary models can be overridden per task; the environment overrides
read by ``load_settings()`` are passed in through ``overrides``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .models import TaskCategory, TaskModelBinding
from .registry import ModelRegistry


def _openai(
    max_tokens: int,
    cost_tier: str,
    per_minute: int = 500,
    tokens_per_minute: int = 30000,
    fallbacks: tuple[str, ...] = (),
    text: bool = True,
    images: bool = True,
    structured_output: bool = True,
    per_day: int = 10000,
) -> dict[str, Any]:
    return {
        "provider": "openai",
        "capabilities": {
            "text": text,
            "images": images,
            "video": False,
            "structured_output": structured_output,
            "max_tokens": max_tokens,
            "cost_tier": cost_tier,
        },
        "rate_limits": {
            "per_minute": per_minute,
            "per_day": per_day,
            "tokens_per_minute": tokens_per_minute,
        },
        "fallbacks": fallbacks,
    }


DEFAULT_MODELS: dict[str, dict[str, Any]] = {
    "gpt-5": _openai(
        128000, "high", fallbacks=("chatgpt-4o-latest", "gpt-4o-2024-11-20")
    ),
    "chatgpt-4o-latest": _openai(
        16384, "medium", fallbacks=("gpt-4o-2024-11-20", "gpt-4o-mini-2024-07-18")
    ),
    "gpt-4o-2024-11-20": _openai(
        16384, "medium", fallbacks=("gpt-4o-mini-2024-07-18", "gpt-4o")
    ),
    "gpt-4o": _openai(16384, "medium", fallbacks=("gpt-4o-mini", "gpt-4-turbo")),
    "gpt-4o-mini-2024-07-18": _openai(
        16384, "low", tokens_per_minute=200000, fallbacks=("gpt-4o-mini", "gpt-4o")
    ),
    "gpt-4o-mini": _openai(
        16384, "low", tokens_per_minute=200000, fallbacks=("gpt-3.5-turbo",)
    ),
    "gpt-4-turbo": _openai(
        128000, "medium", tokens_per_minute=150000, fallbacks=("gpt-4o-mini",)
    ),
    "gpt-3.5-turbo": _openai(
        16385, "low", per_minute=3500, tokens_per_minute=60000, images=False
    ),
    "dall-e-3": _openai(
        0,
        "high",
        per_minute=7,
        per_day=200,
        tokens_per_minute=0,
        text=False,
        structured_output=False,
    ),
}
"""The bundled model table, keyed by model name."""


# task -> (default primary, fallback override)
_TASK_DEFAULTS: dict[TaskCategory, tuple[str, tuple[str, ...]]] = {
    TaskCategory.BRAND_GENERATION: (
        "chatgpt-4o-latest",
        ("gpt-4o-2024-11-20", "gpt-4o"),
    ),
    TaskCategory.BULK_CONTENT: (
        "gpt-4o-mini-2024-07-18",
        ("gpt-4o-mini", "gpt-3.5-turbo"),
    ),
    TaskCategory.CHAT_ASSISTANT: (
        "gpt-4o-mini-2024-07-18",
        ("gpt-4o-mini", "gpt-3.5-turbo"),
    ),
    TaskCategory.IMAGE_GENERATION: ("dall-e-3", ()),
    TaskCategory.VIDEO_GENERATION: ("dall-e-3", ()),
    TaskCategory.CONTENT_RECOMMENDATIONS: (
        "gpt-4o-mini-2024-07-18",
        ("gpt-4o-mini",),
    ),
    TaskCategory.ADVANCED_AI: (
        "chatgpt-4o-latest",
        ("gpt-4o-2024-11-20", "gpt-4o"),
    ),
}

QUALITY_LADDER: tuple[str, ...] = ("gpt-5", "chatgpt-4o-latest", "gpt-4o-2024-11-20")
"""Models preferred, in order, when a caller asks for quality over cost."""


def default_registry() -> ModelRegistry:
    """Registry built from DEFAULT_MODELS."""
    return ModelRegistry.from_mapping(DEFAULT_MODELS)


def default_task_bindings(
    overrides: Mapping[TaskCategory, str] | None = None,
) -> dict[TaskCategory, TaskModelBinding]:
    """
    Task bindings, with ``overrides`` replacing the primary of their tasks.

    The bundled fallback list of a task is kept when its primary is overridden.
    """
    overrides = overrides or {}
    bindings = {}
    for task, (primary, fallbacks) in _TASK_DEFAULTS.items():
        bindings[task] = TaskModelBinding(
            task=task, primary=overrides.get(task) or primary, fallbacks=fallbacks
        )
    return bindings


__all__ = [
    "DEFAULT_MODELS",
    "QUALITY_LADDER",
    "default_registry",
    "default_task_bindings",
]
