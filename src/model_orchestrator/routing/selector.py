# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Model selection for generation tasks.

Resolves which model a request should target first and which models to
fall back to, based on the static registry and the task bindings.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ..exceptions import NoModelAvailableError
from .defaults import QUALITY_LADDER, default_registry, default_task_bindings
from .models import ModelRequirements, TaskCategory, TaskModelBinding
from .registry import ModelRegistry

logger = logging.getLogger(__name__)


class ModelSelector:
    """
    Picks primary and fallback models for a task.

    Example:
        >>> selector = ModelSelector()
        >>> selector.resolve_primary_model(TaskCategory.CHAT_ASSISTANT)
        'gpt-4o-mini-2024-07-18'
        >>> selector.resolve_fallbacks("gpt-4o-mini")
        ['gpt-3.5-turbo']
    """

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        bindings: Mapping[TaskCategory, TaskModelBinding] | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.bindings: dict[TaskCategory, TaskModelBinding] = dict(
            bindings if bindings is not None else default_task_bindings()
        )

    def binding_for(self, task: TaskCategory | str) -> TaskModelBinding:
        """
        Return the binding for a task.

        Raises:
            NoModelAvailableError: If the task has no binding
        """
        try:
            return self.bindings[TaskCategory(task)]
        except (KeyError, ValueError):
            raise NoModelAvailableError(str(task), "task has no model binding") from None

    def resolve_primary_model(
        self,
        task: TaskCategory | str,
        override: str | None = None,
        requirements: ModelRequirements | None = None,
    ) -> str:
        """
        Resolve the first model to try for a task.

        The override wins if it names a registered model that meets the
        requirements. Otherwise the task's configured primary is used; if
        that model misses a required capability, the cheapest model that
        meets the requirements replaces it (when one exists).

        Args:
            task: Task category
            override: Caller-preferred model name
            requirements: Capabilities the model must have

        Returns:
            The model name to try first
        """
        if override is not None:
            descriptor = self.registry.get(override)
            if descriptor is not None and (
                requirements is None or requirements.is_satisfied_by(descriptor)
            ):
                return override
            logger.debug(
                f"Ignoring preferred model {override!r}: "
                f"{'unknown' if descriptor is None else 'missing required capability'}"
            )

        primary = self.binding_for(task).primary
        if requirements is None:
            return primary

        descriptor = self.registry.get(primary)
        if descriptor is not None and requirements.is_satisfied_by(descriptor):
            return primary

        alternative = self.select_best_model(
            requirements.model_copy(update={"prefer_low_cost": True})
        )
        if alternative is not None:
            logger.info(
                f"Primary model {primary} does not meet requirements for "
                f"{TaskCategory(task).value}, using {alternative}"
            )
            return alternative
        return primary

    def resolve_fallbacks(
        self,
        model_name: str,
        task: TaskCategory | str | None = None,
        requirements: ModelRequirements | None = None,
    ) -> list[str]:
        """
        Ordered fallback models for ``model_name``.

        When ``model_name`` is the task's configured primary, the binding's
        fallback override comes first. The model's own static fallbacks
        follow. Duplicates and the model itself are removed. With
        ``requirements``, only registered models that meet them are kept.

        Returns:
            Fallback names (empty for unknown models without a binding)
        """
        candidates: list[str] = []
        if task is not None:
            binding = self.bindings.get(TaskCategory(task))
            if binding is not None and binding.primary == model_name:
                candidates.extend(binding.fallbacks)
        candidates.extend(self.registry.fallbacks_for(model_name))

        ordered: list[str] = []
        for name in candidates:
            if name == model_name or name in ordered:
                continue
            if requirements is not None:
                descriptor = self.registry.get(name)
                if descriptor is None or not requirements.is_satisfied_by(descriptor):
                    logger.debug(f"Skipping fallback {name}: does not meet requirements")
                    continue
            ordered.append(name)
        return ordered

    def select_best_model(self, requirements: ModelRequirements) -> str | None:
        """
        Pick a model that meets the requirements.

        With ``prefer_low_cost`` the cheapest match wins (registry order
        breaks ties); otherwise the first match in registry order.

        Returns:
            A model name, or None if no registered model qualifies
        """
        candidates = [
            descriptor
            for descriptor in self.registry.descriptors()
            if requirements.is_satisfied_by(descriptor)
        ]
        if not candidates:
            return None

        if requirements.prefer_low_cost:
            # sorted() is stable, so equal tiers keep registry order
            candidates = sorted(candidates, key=lambda d: d.capabilities.cost_tier)
        return candidates[0].name

    def recommended_model(
        self,
        task: TaskCategory | str,
        prefer_speed: bool = False,
        prefer_quality: bool = False,
    ) -> str:
        """
        Recommend a model for a task given a speed or quality preference.

        Speed picks the cheapest structured-output text model with at least
        10 requests per minute. Quality picks the first registered model of
        QUALITY_LADDER. Otherwise (or if nothing matches) the task primary.
        """
        if prefer_speed:
            fast = self.select_best_model(
                ModelRequirements(
                    text=True,
                    structured_output=True,
                    min_requests_per_minute=10,
                    prefer_low_cost=True,
                )
            )
            if fast is not None:
                return fast

        if prefer_quality:
            for name in QUALITY_LADDER:
                if self.registry.is_available(name):
                    return name

        return self.binding_for(task).primary


__all__ = ["ModelSelector"]
