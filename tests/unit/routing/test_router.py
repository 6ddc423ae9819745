"""
Unit tests for FallbackRouter.

Tests cover:
- Primary success and the M1 -> [M2, M3] fallback chain
- Non-availability errors propagating unchanged
- Unknown fallbacks skipped, cycles and the model cap
- AllModelsFailedError contents and chaining
- Fallback metrics
"""

import pytest

from model_orchestrator.exceptions import (
    AllModelsFailedError,
    ModelCallError,
    NoModelAvailableError,
)
from model_orchestrator.observability import FALLBACKS_TOTAL, GENERATIONS_FAILED_TOTAL
from model_orchestrator.routing import (
    FallbackRouter,
    GenerationRequest,
    ModelRegistry,
    ModelSelector,
    TaskCategory,
    TaskModelBinding,
)


def make_selector(models, primary="M1", binding_fallbacks=()):
    registry = ModelRegistry.from_mapping(models)
    bindings = {
        TaskCategory.BULK_CONTENT: TaskModelBinding(
            task=TaskCategory.BULK_CONTENT, primary=primary, fallbacks=binding_fallbacks
        )
    }
    return ModelSelector(registry, bindings)


CHAIN = {
    "M1": {"fallbacks": ["M2", "M3"]},
    "M2": {},
    "M3": {},
}


class ScriptedExecutor:
    """Executor that fails for chosen models and records every call."""

    def __init__(self, failures: dict[str, Exception]) -> None:
        self.failures = failures
        self.calls: list[str] = []

    async def __call__(self, model: str, request: GenerationRequest):
        self.calls.append(model)
        if model in self.failures:
            raise self.failures[model]
        return f"response from {model}"


def unavailable(model: str) -> ModelCallError:
    return ModelCallError.from_status(503, f"{model} overloaded", model=model)


REQUEST = GenerationRequest(task=TaskCategory.BULK_CONTENT, payload="write a post")


class TestFallbackChain:
    """Walking the fallback chain."""

    @pytest.mark.asyncio
    async def test_primary_success(self):
        execute = ScriptedExecutor({})
        router = FallbackRouter(make_selector(CHAIN), execute)

        result = await router.generate(REQUEST)

        assert result.model_used == "M1"
        assert result.fallbacks_attempted == []
        assert result.response == "response from M1"
        assert execute.calls == ["M1"]

    @pytest.mark.asyncio
    async def test_falls_back_until_success(self):
        """M1 and M2 unavailable, M3 succeeds."""
        execute = ScriptedExecutor({"M1": unavailable("M1"), "M2": unavailable("M2")})
        router = FallbackRouter(make_selector(CHAIN), execute)

        result = await router.generate(REQUEST)

        assert result.model_used == "M3"
        assert result.fallbacks_attempted == ["M1", "M2"]
        assert execute.calls == ["M1", "M2", "M3"]

    @pytest.mark.asyncio
    async def test_message_based_unavailability(self):
        execute = ScriptedExecutor({"M1": RuntimeError("You exceeded your current quota")})
        router = FallbackRouter(make_selector(CHAIN), execute)

        result = await router.generate(REQUEST)
        assert result.model_used == "M2"

    @pytest.mark.asyncio
    async def test_all_fail(self):
        failures = {name: unavailable(name) for name in CHAIN}
        execute = ScriptedExecutor(failures)
        router = FallbackRouter(make_selector(CHAIN), execute)

        with pytest.raises(AllModelsFailedError) as exc_info:
            await router.generate(REQUEST)

        error = exc_info.value
        assert error.attempted_models == ["M1", "M2", "M3"]
        assert error.last_error is failures["M3"]
        assert error.__cause__ is failures["M3"]

    @pytest.mark.asyncio
    async def test_other_errors_propagate_unchanged(self):
        bad_request = ModelCallError.from_status(400, "invalid prompt")
        execute = ScriptedExecutor({"M1": bad_request})
        router = FallbackRouter(make_selector(CHAIN), execute)

        with pytest.raises(ModelCallError) as exc_info:
            await router.generate(REQUEST)

        assert exc_info.value is bad_request
        assert execute.calls == ["M1"]

    @pytest.mark.asyncio
    async def test_non_availability_error_in_fallback_propagates(self):
        auth = ModelCallError.from_status(401, "bad key")
        execute = ScriptedExecutor({"M1": unavailable("M1"), "M2": auth})
        router = FallbackRouter(make_selector(CHAIN), execute)

        with pytest.raises(ModelCallError) as exc_info:
            await router.generate(REQUEST)
        assert exc_info.value is auth
        assert execute.calls == ["M1", "M2"]


class TestRoutingEdgeCases:
    """Unknown models, cycles and caps."""

    @pytest.mark.asyncio
    async def test_unknown_fallbacks_skipped_without_counting(self):
        models = {"M1": {"fallbacks": ["ghost", "M2"]}, "M2": {}}
        execute = ScriptedExecutor({"M1": unavailable("M1"), "M2": unavailable("M2")})
        router = FallbackRouter(make_selector(models), execute)

        with pytest.raises(AllModelsFailedError) as exc_info:
            await router.generate(REQUEST)

        assert exc_info.value.attempted_models == ["M1", "M2"]
        assert "ghost" not in execute.calls

    @pytest.mark.asyncio
    async def test_cycle_not_retried(self):
        models = {"M1": {"fallbacks": ["M2"]}, "M2": {"fallbacks": ["M1"]}}
        execute = ScriptedExecutor({"M1": unavailable("M1"), "M2": unavailable("M2")})
        router = FallbackRouter(
            make_selector(models, binding_fallbacks=("M2", "M1", "M2")), execute
        )

        with pytest.raises(AllModelsFailedError):
            await router.generate(REQUEST)
        assert execute.calls == ["M1", "M2"]

    @pytest.mark.asyncio
    async def test_max_models_cap(self):
        execute = ScriptedExecutor({name: unavailable(name) for name in CHAIN})
        router = FallbackRouter(make_selector(CHAIN), execute, max_models=2)

        with pytest.raises(AllModelsFailedError) as exc_info:
            await router.generate(REQUEST)

        assert exc_info.value.attempted_models == ["M1", "M2"]
        assert execute.calls == ["M1", "M2"]

    def test_default_cap_is_registry_size(self):
        router = FallbackRouter(make_selector(CHAIN), ScriptedExecutor({}))
        assert router.model_limit == 3

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            FallbackRouter(make_selector(CHAIN), ScriptedExecutor({}), max_models=0)

    @pytest.mark.asyncio
    async def test_preferred_model(self):
        execute = ScriptedExecutor({})
        router = FallbackRouter(make_selector(CHAIN), execute)

        request = GenerationRequest(task="bulk_content", payload="p", preferred_model="M3")
        result = await router.generate(request)
        assert result.model_used == "M3"

    @pytest.mark.asyncio
    async def test_structured_output_requirement(self):
        models = {
            "M1": {"capabilities": {"structured_output": False}},
            "M2": {"capabilities": {"structured_output": True, "cost_tier": "low"}},
        }
        execute = ScriptedExecutor({})
        router = FallbackRouter(make_selector(models), execute)

        request = GenerationRequest(
            task="bulk_content", payload="p", require_structured_output=True
        )
        result = await router.generate(request)
        assert result.model_used == "M2"

    @pytest.mark.asyncio
    async def test_structured_output_filters_fallbacks(self):
        models = {
            "M1": {
                "capabilities": {"structured_output": True},
                "fallbacks": ["plain", "M2"],
            },
            "plain": {"capabilities": {"structured_output": False}},
            "M2": {"capabilities": {"structured_output": True}},
        }
        execute = ScriptedExecutor({"M1": unavailable("M1"), "M2": unavailable("M2")})
        router = FallbackRouter(make_selector(models), execute)

        request = GenerationRequest(
            task="bulk_content", payload="p", require_structured_output=True
        )
        with pytest.raises(AllModelsFailedError) as exc_info:
            await router.generate(request)

        assert execute.calls == ["M1", "M2"]
        assert exc_info.value.attempted_models == ["M1", "M2"]

    @pytest.mark.asyncio
    async def test_fallbacks_unfiltered_without_requirement(self):
        models = {
            "M1": {"capabilities": {"structured_output": True}, "fallbacks": ["plain"]},
            "plain": {"capabilities": {"structured_output": False}},
        }
        execute = ScriptedExecutor({"M1": unavailable("M1")})
        router = FallbackRouter(make_selector(models), execute)

        result = await router.generate(REQUEST)

        assert result.model_used == "plain"

    @pytest.mark.asyncio
    async def test_no_candidates_raises_no_model_available(self):
        class EmptyRouter(FallbackRouter):
            def candidate_models(self, request):
                return []

        execute = ScriptedExecutor({})
        router = EmptyRouter(make_selector(CHAIN), execute)

        with pytest.raises(NoModelAvailableError, match="no candidate model was tried"):
            await router.generate(REQUEST)

        assert execute.calls == []

    def test_request_task_coerced(self):
        assert GenerationRequest(task="bulk_content", payload="p").task is TaskCategory.BULK_CONTENT


class TestRouterMetrics:
    """Fallback metrics."""

    @pytest.mark.asyncio
    async def test_fallbacks_counted(self, metrics):
        execute = ScriptedExecutor({"M1": unavailable("M1"), "M2": unavailable("M2")})
        router = FallbackRouter(make_selector(CHAIN), execute, metrics_collector=metrics)

        await router.generate(REQUEST)

        assert metrics.get_counter(FALLBACKS_TOTAL, {"model": "M2"}) == 1
        assert metrics.get_counter(FALLBACKS_TOTAL, {"model": "M3"}) == 1

    @pytest.mark.asyncio
    async def test_failed_generation_counted(self, metrics):
        execute = ScriptedExecutor({name: unavailable(name) for name in CHAIN})
        router = FallbackRouter(make_selector(CHAIN), execute, metrics_collector=metrics)

        with pytest.raises(AllModelsFailedError):
            await router.generate(REQUEST)

        assert metrics.get_counter(GENERATIONS_FAILED_TOTAL, {"task": "bulk_content"}) == 1
