# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Static registry of known models.

The registry is built once at start (from the bundled defaults, a mapping,
or a JSON file) and never changes afterwards. A model that is not in the
registry is treated as unavailable.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..exceptions import RegistryError
from .models import ModelDescriptor

logger = logging.getLogger(__name__)


class ModelRegistry:
    """
    Immutable mapping of model name to ModelDescriptor.

    Iteration follows insertion order, which is also the order
    ``ModelSelector.select_best_model`` uses to break ties.
    """

    def __init__(self, descriptors: Iterable[ModelDescriptor]) -> None:
        models: dict[str, ModelDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in models:
                raise RegistryError(f"Duplicate model in registry: {descriptor.name}")
            models[descriptor.name] = descriptor
        self._models = models

        dangling = sorted(
            {
                fallback
                for descriptor in models.values()
                for fallback in descriptor.fallbacks
                if fallback not in models
            }
        )
        if dangling:
            # Allowed: unknown fallbacks are skipped at routing time
            logger.debug(f"Registry fallbacks reference unknown models: {dangling}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> "ModelRegistry":
        """
        Build a registry from ``{name: descriptor fields}``.

        The ``name`` field may be omitted from each entry; the key is used.

        Raises:
            RegistryError: If an entry fails validation
        """
        descriptors = []
        for name, fields in data.items():
            try:
                descriptors.append(ModelDescriptor.model_validate({"name": name, **fields}))
            except ValidationError as e:
                raise RegistryError(f"Invalid descriptor for model '{name}': {e}") from e
        return cls(descriptors)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ModelRegistry":
        """
        Load a registry from a JSON file shaped like ``from_mapping`` input.

        Raises:
            RegistryError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RegistryError(f"Could not load model registry from {path}: {e}") from e
        if not isinstance(data, dict):
            raise RegistryError(f"Model registry {path} must contain a JSON object")

        registry = cls.from_mapping(data)
        logger.info(f"Loaded {len(registry)} models from {path}")
        return registry

    def get(self, name: str) -> ModelDescriptor | None:
        """Return the descriptor for ``name``, or None if unknown."""
        return self._models.get(name)

    def is_available(self, name: str | None) -> bool:
        """True if ``name`` is a registered model."""
        return name is not None and name in self._models

    def supports(self, name: str, capability: str) -> bool:
        """True if ``name`` is registered and has the boolean capability."""
        descriptor = self._models.get(name)
        return descriptor is not None and descriptor.supports(capability)

    def models_with_capability(self, capability: str) -> list[str]:
        """Names of every registered model that has the capability."""
        return [
            name
            for name, descriptor in self._models.items()
            if descriptor.supports(capability)
        ]

    def fallbacks_for(self, name: str) -> list[str]:
        """Static fallback list of ``name`` (empty for unknown models)."""
        descriptor = self._models.get(name)
        return list(descriptor.fallbacks) if descriptor else []

    def display_name(self, name: str) -> str:
        """Title-cased name for display (``gpt-4o-mini`` -> ``Gpt 4o Mini``)."""
        if name not in self._models:
            return name
        return " ".join(word[:1].upper() + word[1:] for word in name.split("-"))

    def names(self) -> list[str]:
        return list(self._models)

    def descriptors(self) -> list[ModelDescriptor]:
        return list(self._models.values())

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)


__all__ = ["ModelRegistry"]
