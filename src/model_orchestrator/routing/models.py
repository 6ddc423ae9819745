# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Model and task configuration models.

Descriptors are static configuration loaded at start and read-only at
runtime. They use Pydantic so registries loaded from JSON files are
validated on the way in.
"""

from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CostTier(IntEnum):
    """Relative price of a model; lower sorts first."""

    FREE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def parse(cls, value: "str | int | CostTier") -> "CostTier":
        """Accept a tier, its integer value, or its name in any case."""
        if isinstance(value, CostTier):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown cost tier: {value!r}") from None
        return cls(value)


class TaskCategory(str, Enum):
    """Named classes of generation requests, each with a default model."""

    BRAND_GENERATION = "brand_generation"
    BULK_CONTENT = "bulk_content"
    CHAT_ASSISTANT = "chat_assistant"
    IMAGE_GENERATION = "image_generation"
    VIDEO_GENERATION = "video_generation"
    CONTENT_RECOMMENDATIONS = "content_recommendations"
    ADVANCED_AI = "advanced_ai"


class ModelCapabilities(BaseModel):
    """What a model can do."""

    model_config = ConfigDict(frozen=True)

    text: bool = True
    images: bool = False
    video: bool = False
    structured_output: bool = False
    max_tokens: int = Field(default=0, ge=0)
    cost_tier: CostTier = CostTier.MEDIUM

    @field_validator("cost_tier", mode="before")
    @classmethod
    def _parse_cost_tier(cls, value: object) -> CostTier:
        return CostTier.parse(value)  # type: ignore[arg-type]


class ModelRateLimits(BaseModel):
    """Published provider limits for a model."""

    model_config = ConfigDict(frozen=True)

    per_minute: int = Field(default=0, ge=0)
    per_day: int = Field(default=0, ge=0)
    tokens_per_minute: int = Field(default=0, ge=0)


class ModelDescriptor(BaseModel):
    """
    Static metadata about one generation backend.

    ``fallbacks`` names the models to try, in order, when this one is
    unavailable. The resulting graph is not guaranteed to be acyclic.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    provider: str = "custom"
    capabilities: ModelCapabilities = Field(default_factory=ModelCapabilities)
    rate_limits: ModelRateLimits = Field(default_factory=ModelRateLimits)
    fallbacks: tuple[str, ...] = ()

    def supports(self, capability: str) -> bool:
        """Check a boolean capability such as ``"structured_output"``."""
        value = getattr(self.capabilities, capability, None)
        if not isinstance(value, bool):
            raise ValueError(f"Unknown capability: {capability!r}")
        return value


class TaskModelBinding(BaseModel):
    """Primary model and fallback override for one task category."""

    model_config = ConfigDict(frozen=True)

    task: TaskCategory
    primary: str = Field(min_length=1)
    fallbacks: tuple[str, ...] = ()


class ModelRequirements(BaseModel):
    """Capability filter used to pick a model."""

    model_config = ConfigDict(frozen=True)

    text: bool = False
    images: bool = False
    video: bool = False
    structured_output: bool = False
    prefer_low_cost: bool = False
    min_requests_per_minute: int | None = None

    def is_satisfied_by(self, descriptor: ModelDescriptor) -> bool:
        """Check a descriptor against every requirement."""
        caps = descriptor.capabilities
        if self.text and not caps.text:
            return False
        if self.images and not caps.images:
            return False
        if self.video and not caps.video:
            return False
        if self.structured_output and not caps.structured_output:
            return False
        return not (
            self.min_requests_per_minute
            and descriptor.rate_limits.per_minute < self.min_requests_per_minute
        )


__all__ = [
    "CostTier",
    "ModelCapabilities",
    "ModelDescriptor",
    "ModelRateLimits",
    "ModelRequirements",
    "TaskCategory",
    "TaskModelBinding",
]
