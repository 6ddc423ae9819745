"""
Shared fixtures for benchmark tests.
"""

import asyncio
from typing import Any

import pytest
import pytest_asyncio

from model_orchestrator import OrchestratorConfig, RequestConfig, RequestOrchestrator


class BenchmarkModel:
    """Model call with a fixed latency, for measuring orchestration only."""

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.calls = 0

    async def __call__(self, model_name: str, payload: Any) -> dict[str, Any]:
        self.calls += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        return {"model": model_name, "payload": payload}


@pytest.fixture
def benchmark_config():
    """Configuration with limits high enough to never throttle a benchmark."""
    return OrchestratorConfig(
        requests_per_minute=1_000_000,
        requests_per_hour=1_000_000,
        default_request=RequestConfig(timeout=5.0),
    )


@pytest.fixture
def benchmark_model():
    return BenchmarkModel()


@pytest_asyncio.fixture
async def orchestrator(benchmark_config, benchmark_model):
    """Orchestrator wired to the benchmark model."""
    async with RequestOrchestrator(
        model_call=benchmark_model, config=benchmark_config
    ) as orchestrator:
        yield orchestrator
