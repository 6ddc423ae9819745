"""
Shared fixtures for integration tests.

The simulated provider behaves like a hosted model API: it tracks calls
per model, can mark models as overloaded or out of quota, and can inject
transient server errors.
"""

import asyncio
from typing import Any

import pytest
import pytest_asyncio

from model_orchestrator import (
    ModelCallError,
    ModelRegistry,
    OrchestratorConfig,
    RequestConfig,
    RequestOrchestrator,
    TaskCategory,
    TaskModelBinding,
)


class SimulatedProvider:
    """In-process stand-in for a model provider."""

    def __init__(self, latency: float = 0.005) -> None:
        self.latency = latency
        self.calls: list[tuple[str, Any]] = []
        self.overloaded: set[str] = set()
        self.out_of_quota: set[str] = set()
        self.transient_failures: dict[str, int] = {}
        self.active = 0
        self.peak_active = 0

    async def __call__(self, model_name: str, payload: Any) -> dict[str, Any]:
        self.calls.append((model_name, payload))
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            await asyncio.sleep(self.latency)

            if model_name in self.overloaded:
                raise ModelCallError.from_status(503, "The model is overloaded", model=model_name)
            if model_name in self.out_of_quota:
                raise ModelCallError.from_status(
                    429, "You exceeded your current quota", model=model_name
                )
            remaining = self.transient_failures.get(model_name, 0)
            if remaining:
                self.transient_failures[model_name] = remaining - 1
                raise ModelCallError.from_status(500, "Internal error", model=model_name)

            return {"model": model_name, "content": f"generated: {payload}"}
        finally:
            self.active -= 1

    def calls_for(self, model_name: str) -> int:
        return sum(1 for name, _ in self.calls if name == model_name)


@pytest.fixture
def provider() -> SimulatedProvider:
    return SimulatedProvider()


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry.from_mapping(
        {
            "flagship": {
                "capabilities": {"structured_output": True, "cost_tier": "high"},
                "fallbacks": ["workhorse", "budget"],
            },
            "workhorse": {
                "capabilities": {"structured_output": True, "cost_tier": "medium"},
                "fallbacks": ["budget"],
            },
            "budget": {"capabilities": {"structured_output": False, "cost_tier": "low"}},
        }
    )


@pytest.fixture
def bindings() -> dict[TaskCategory, TaskModelBinding]:
    return {
        TaskCategory.BRAND_GENERATION: TaskModelBinding(
            task=TaskCategory.BRAND_GENERATION, primary="flagship"
        ),
        TaskCategory.BULK_CONTENT: TaskModelBinding(
            task=TaskCategory.BULK_CONTENT, primary="workhorse", fallbacks=("budget",)
        ),
    }


@pytest_asyncio.fixture
async def orchestrator(provider, registry, bindings):
    config = OrchestratorConfig(
        queue_poll_interval=0.01,
        default_request=RequestConfig(
            retry={"base_delay": 0.001, "max_delay": 0.01, "jitter_ratio": 0.0},
            timeout=1.0,
        ),
    )
    async with RequestOrchestrator(
        model_call=provider, config=config, registry=registry, bindings=bindings
    ) as orchestrator:
        yield orchestrator
