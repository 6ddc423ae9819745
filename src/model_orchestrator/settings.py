# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Environment settings for the Model Request Orchestrator.

Settings are read from ``MODEL_ORCHESTRATOR_*`` environment variables with
pydantic-settings and turned into an OrchestratorConfig. Per-task model
overrides also accept the bare variable names used by existing
deployments (``CHAT_MODEL=gpt-4o``); the prefixed name wins when both are
set. Unset or empty variables keep the defaults.

Example:
    >>> settings = load_settings()
    >>> config = settings.to_config()
    >>> bindings = default_task_bindings(settings.task_model_overrides())
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import ENV_PREFIX, OrchestratorConfig, RequestConfig
from .exceptions import ConfigurationError
from .routing.models import TaskCategory


def _model_override(variable: str) -> Any:
    return Field(
        default=None,
        validation_alias=AliasChoices(f"{ENV_PREFIX}{variable}", variable),
    )


# settings field -> OrchestratorConfig field
_CONFIG_FIELDS: dict[str, str] = {
    "requests_per_minute": "requests_per_minute",
    "requests_per_hour": "requests_per_hour",
    "queue_poll_interval": "queue_poll_interval",
    "concurrency": "default_concurrency",
    "max_fallback_models": "max_fallback_models",
    "metrics_enabled": "metrics_enabled",
}

_TASK_MODEL_FIELDS: dict[TaskCategory, str] = {
    TaskCategory.BRAND_GENERATION: "brand_generation_model",
    TaskCategory.BULK_CONTENT: "bulk_content_model",
    TaskCategory.CHAT_ASSISTANT: "chat_model",
    TaskCategory.IMAGE_GENERATION: "image_model",
    TaskCategory.VIDEO_GENERATION: "video_model",
    TaskCategory.CONTENT_RECOMMENDATIONS: "content_rec_model",
    TaskCategory.ADVANCED_AI: "advanced_ai_model",
}


class OrchestratorSettings(BaseSettings):
    """Orchestrator options read from the process environment."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    # === Rate Limiting ===

    requests_per_minute: int | None = None
    requests_per_hour: int | None = None
    queue_poll_interval: float | None = None

    # === Request Pipeline ===

    timeout: float | None = None
    max_attempts: int | None = None
    cache_ttl: float | None = None

    # === Routing and Batches ===

    max_fallback_models: int | None = None
    concurrency: int | None = None
    metrics_enabled: bool | None = None

    # === Per-task model overrides ===

    brand_generation_model: str | None = _model_override("BRAND_GENERATION_MODEL")
    bulk_content_model: str | None = _model_override("BULK_CONTENT_MODEL")
    chat_model: str | None = _model_override("CHAT_MODEL")
    image_model: str | None = _model_override("IMAGE_MODEL")
    video_model: str | None = _model_override("VIDEO_MODEL")
    content_rec_model: str | None = _model_override("CONTENT_REC_MODEL")
    advanced_ai_model: str | None = _model_override("ADVANCED_AI_MODEL")

    def to_config(self) -> OrchestratorConfig:
        """
        Build an OrchestratorConfig, keeping defaults for unset variables.

        Raises:
            ConfigurationError: If a value is out of range
        """
        values = self.model_dump(exclude_none=True)
        kwargs: dict[str, Any] = {
            target: values[source]
            for source, target in _CONFIG_FIELDS.items()
            if source in values
        }

        request_kwargs: dict[str, Any] = {
            name: values[name] for name in ("timeout", "cache_ttl") if name in values
        }
        if "max_attempts" in values:
            request_kwargs["retry"] = {"max_attempts": values["max_attempts"]}
        if request_kwargs:
            kwargs["default_request"] = RequestConfig(**request_kwargs)

        return OrchestratorConfig(**kwargs)

    def task_model_overrides(self) -> dict[TaskCategory, str]:
        """Primary model overrides for the tasks that have one set."""
        overrides = {}
        for task, name in _TASK_MODEL_FIELDS.items():
            model = getattr(self, name)
            if model:
                overrides[task] = model
        return overrides


def _variable_name(field_name: str) -> str:
    name = field_name.upper()
    return name if name.startswith(ENV_PREFIX) else f"{ENV_PREFIX}{name}"


def load_settings() -> OrchestratorSettings:
    """
    Read OrchestratorSettings from the environment.

    Raises:
        ConfigurationError: If a variable cannot be parsed
    """
    try:
        return OrchestratorSettings()
    except ValidationError as e:
        details = "; ".join(
            f"{_variable_name(str(error['loc'][0]))}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid environment configuration: {details}") from e


__all__ = ["OrchestratorSettings", "load_settings"]
