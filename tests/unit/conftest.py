"""Shared fixtures for unit tests."""

import os

import pytest

from model_orchestrator.config import ENV_PREFIX
from model_orchestrator.observability import MetricsCollector


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Collector with its own Prometheus registry."""
    return MetricsCollector()


@pytest.fixture
def clean_env(monkeypatch):
    """Process environment without orchestrator variables or model overrides."""
    for name in list(os.environ):
        upper = name.upper()
        if upper.startswith(ENV_PREFIX) or upper.endswith("_MODEL"):
            monkeypatch.delenv(name)
    return monkeypatch
