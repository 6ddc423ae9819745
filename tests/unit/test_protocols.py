from typing import Any

from model_orchestrator.observability import MetricsCollectorProtocol
from model_orchestrator.protocols import ModelCall


class TestProtocols:
    def test_model_call_protocol_runtime_checkable(self):
        """Verify an async callable object satisfies ModelCall."""

        class Client:
            async def __call__(self, model_name: str, payload: Any) -> Any:
                return {"model": model_name}

        assert isinstance(Client(), ModelCall)

    def test_plain_coroutine_function_is_callable(self):
        async def call_model(model_name: str, payload: Any) -> Any:
            return payload

        assert isinstance(call_model, ModelCall)

    def test_metrics_protocol_runtime_checkable(self):
        """A minimal in-house collector satisfies the metrics protocol."""

        class NullCollector:
            def inc_counter(self, name, value=1, labels=None):
                pass

            def set_gauge(self, name, value, labels=None):
                pass

            def inc_gauge(self, name, value=1.0, labels=None):
                pass

            def dec_gauge(self, name, value=1.0, labels=None):
                pass

            def observe_histogram(self, name, value, labels=None):
                pass

            def get_metrics(self):
                return {}

            def reset(self):
                pass

        assert isinstance(NullCollector(), MetricsCollectorProtocol)

    def test_incomplete_collector_rejected(self):
        class CountersOnly:
            def inc_counter(self, name, value=1, labels=None):
                pass

        assert not isinstance(CountersOnly(), MetricsCollectorProtocol)
