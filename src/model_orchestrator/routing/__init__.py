# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Model registry, selection and fallback routing.

- ModelRegistry: Immutable table of known models and their capabilities
- ModelSelector: Resolves primary and fallback models for a task
- FallbackRouter: Walks the fallback chain when a model is unavailable
"""

from .defaults import DEFAULT_MODELS, QUALITY_LADDER, default_registry, default_task_bindings
from .models import (
    CostTier,
    ModelCapabilities,
    ModelDescriptor,
    ModelRateLimits,
    ModelRequirements,
    TaskCategory,
    TaskModelBinding,
)
from .registry import ModelRegistry
from .router import FallbackRouter, GenerationRequest, GenerationResult, ModelExecutor
from .selector import ModelSelector

__all__ = [
    "DEFAULT_MODELS",
    "QUALITY_LADDER",
    "CostTier",
    "FallbackRouter",
    "GenerationRequest",
    "GenerationResult",
    "ModelCapabilities",
    "ModelDescriptor",
    "ModelExecutor",
    "ModelRateLimits",
    "ModelRegistry",
    "ModelRequirements",
    "ModelSelector",
    "TaskCategory",
    "TaskModelBinding",
    "default_registry",
    "default_task_bindings",
]
