"""Unit and property tests for TestRunner."""

from __future__ import annotations

import asyncio
import time

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from provingground.config.models import RunnerSettings
from provingground.engines.registry import EngineRegistry
from provingground.models import EngineResult, OutcomeErrorKind, ScenarioRequest
from provingground.runner import TestRunner as ScenarioTestRunner


class SleepyEngine:
    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.finished = False
        self.cancelled = False

    async def validate(self, context: dict[str, object]) -> EngineResult:
        try:
            await asyncio.sleep(self.seconds)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        return EngineResult(success=True, message=f"slept {self.seconds}")


class TestExecute:
    @pytest.mark.asyncio
    async def test_sync_engine_success(self, runner: ScenarioTestRunner) -> None:
        outcome = await runner.execute("always-pass")
        assert outcome.success is True
        assert outcome.message == "ok"
        assert outcome.error_kind is None
        assert outcome.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_async_mapping_result_is_normalized(self, runner: ScenarioTestRunner) -> None:
        outcome = await runner.execute("always-fail")
        assert outcome.success is False
        assert outcome.message == "threshold missed"
        assert outcome.metrics == {"score": 1.0}
        assert outcome.error_kind is None

    @pytest.mark.asyncio
    async def test_unknown_scenario_is_failed_outcome(self, runner: ScenarioTestRunner) -> None:
        outcome = await runner.execute("demo")
        assert outcome.success is False
        assert outcome.message == "unknown scenario: demo"
        assert outcome.error_kind == OutcomeErrorKind.UNKNOWN_SCENARIO

    @pytest.mark.asyncio
    async def test_engine_exception_is_captured(self) -> None:
        registry = EngineRegistry()

        @registry.register_function("boom")
        def _boom(_: dict[str, object]) -> EngineResult:
            raise RuntimeError("kaput")

        outcome = await ScenarioTestRunner(registry).execute("boom")
        assert outcome.success is False
        assert outcome.message == "scenario execution failed: kaput"
        assert outcome.error_kind == OutcomeErrorKind.ENGINE_ERROR

    @pytest.mark.asyncio
    async def test_invalid_result_is_captured(self) -> None:
        registry = EngineRegistry()
        registry.register_function("none")(lambda _: None)
        registry.register_function("no-success")(lambda _: {"message": "hi"})

        runner = ScenarioTestRunner(registry)
        for name in ("none", "no-success"):
            outcome = await runner.execute(name)
            assert outcome.success is False
            assert outcome.message.startswith("invalid engine result:")
            assert outcome.error_kind == OutcomeErrorKind.INVALID_RESULT

    @pytest.mark.asyncio
    async def test_string_success_flag_is_parsed_not_truthy(self) -> None:
        registry = EngineRegistry()
        registry.register_function("stringly")(lambda _: {"success": "false", "message": "nope"})
        registry.register_function("garbled")(lambda _: {"success": "maybe"})
        runner = ScenarioTestRunner(registry)

        outcome = await runner.execute("stringly")
        assert outcome.success is False
        assert outcome.message == "nope"
        assert outcome.error_kind is None

        outcome = await runner.execute("garbled")
        assert outcome.success is False
        assert outcome.error_kind == OutcomeErrorKind.INVALID_RESULT

    @pytest.mark.asyncio
    async def test_non_numeric_metrics_dropped_and_bad_metrics_rejected(self) -> None:
        registry = EngineRegistry()
        registry.register_function("mixed")(
            lambda _: {"success": True, "message": None, "metrics": {"ms": 12, "label": "fast"}}
        )
        registry.register_function("listy")(lambda _: {"success": True, "metrics": [1, 2]})
        runner = ScenarioTestRunner(registry)

        outcome = await runner.execute("mixed")
        assert outcome.success is True
        assert outcome.metrics == {"ms": 12.0}
        assert outcome.message == "Executed mixed"

        outcome = await runner.execute("listy")
        assert outcome.error_kind == OutcomeErrorKind.INVALID_RESULT

    @pytest.mark.asyncio
    async def test_empty_message_gets_default(self) -> None:
        registry = EngineRegistry()
        registry.register_function("quiet")(lambda _: {"success": True})
        outcome = await ScenarioTestRunner(registry).execute("quiet")
        assert outcome.message == "Executed quiet"

    @pytest.mark.asyncio
    async def test_context_is_passed_to_engine(self) -> None:
        registry = EngineRegistry()
        seen: list[dict[str, object]] = []

        @registry.register_function("capture")
        def _capture(context: dict[str, object]) -> dict[str, object]:
            seen.append(context)
            return {"success": True}

        runner = ScenarioTestRunner(registry)
        await runner.execute("capture", {"build": 3})
        await runner.execute("capture")
        assert seen == [{"build": 3}, {}]

    @pytest.mark.asyncio
    async def test_timestamps_follow_injected_clock(self, registry: EngineRegistry, clock) -> None:
        runner = ScenarioTestRunner(registry, now_fn=clock)
        outcome = await runner.execute("always-pass")
        assert outcome.started_at == clock.now
        assert outcome.finished_at == clock.now
        assert outcome.duration_ms == 0

    def test_invalid_settings_rejected(self) -> None:
        with pytest.raises(ValueError):
            ScenarioTestRunner(default_timeout_ms=0)
        with pytest.raises(ValueError):
            ScenarioTestRunner(max_parallel=0)

    def test_from_settings(self, registry: EngineRegistry) -> None:
        runner = ScenarioTestRunner.from_settings(registry, RunnerSettings(default_timeout_ms=10, max_parallel=2))
        assert runner.registry is registry


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_fast_engine_finishes_inside_budget(self, runner: ScenarioTestRunner) -> None:
        outcome = await runner.execute_with_timeout("always-pass", timeout_ms=1000)
        assert outcome.success is True

    @pytest.mark.asyncio
    async def test_timeout_cancels_async_engine(self) -> None:
        engine = SleepyEngine(5)
        registry = EngineRegistry()
        registry.register("slow", engine)
        runner = ScenarioTestRunner(registry)

        outcome = await runner.execute_with_timeout("slow", timeout_ms=50)
        await asyncio.sleep(0.01)

        assert outcome.success is False
        assert outcome.message == "scenario timed out after 50ms"
        assert outcome.error_kind == OutcomeErrorKind.TIMEOUT
        assert engine.cancelled is True
        assert engine.finished is False

    @pytest.mark.asyncio
    async def test_timeout_without_cancel_lets_engine_finish(self) -> None:
        engine = SleepyEngine(0.2)
        registry = EngineRegistry()
        registry.register("slow", engine)
        runner = ScenarioTestRunner(registry, cancel_on_timeout=False)

        outcome = await runner.execute_with_timeout("slow", timeout_ms=20)
        assert outcome.error_kind == OutcomeErrorKind.TIMEOUT

        await asyncio.sleep(0.4)
        assert engine.finished is True
        assert engine.cancelled is False

    @pytest.mark.asyncio
    async def test_sync_engine_timeout_returns_promptly(self) -> None:
        registry = EngineRegistry()
        registry.register_function("blocking")(lambda _: time.sleep(0.3) or {"success": True})
        runner = ScenarioTestRunner(registry)

        started = time.monotonic()
        outcome = await runner.execute_with_timeout("blocking", timeout_ms=30)
        assert time.monotonic() - started < 0.25
        assert outcome.error_kind == OutcomeErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_default_budget_used_when_not_given(self) -> None:
        registry = EngineRegistry()
        registry.register("slow", SleepyEngine(5))
        runner = ScenarioTestRunner(registry, default_timeout_ms=30)
        outcome = await runner.execute_with_timeout("slow")
        assert outcome.message == "scenario timed out after 30ms"

    @pytest.mark.asyncio
    async def test_non_positive_budget_rejected(self, runner: ScenarioTestRunner) -> None:
        with pytest.raises(ValueError):
            await runner.execute_with_timeout("always-pass", timeout_ms=0)


class TestParallel:
    @pytest.mark.asyncio
    async def test_outcomes_keep_request_order(self) -> None:
        registry = EngineRegistry()
        registry.register("slow", SleepyEngine(0.1))
        registry.register("fast", SleepyEngine(0))
        runner = ScenarioTestRunner(registry)

        outcomes = await runner.execute_parallel(
            [
                ScenarioRequest(scenario="slow"),
                {"scenario": "fast"},
                {"scenario": "unknown", "context": {"x": 1}},
            ]
        )
        assert [outcome.scenario for outcome in outcomes] == ["slow", "fast", "unknown"]
        assert [outcome.success for outcome in outcomes] == [True, True, False]

    @pytest.mark.asyncio
    async def test_runs_concurrently(self) -> None:
        registry = EngineRegistry()
        registry.register("nap", SleepyEngine(0.2))
        runner = ScenarioTestRunner(registry)

        started = time.monotonic()
        outcomes = await runner.execute_parallel([{"scenario": "nap"}] * 5)
        assert time.monotonic() - started < 0.8
        assert all(outcome.success for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_max_parallel_limits_concurrency(self) -> None:
        active = 0
        peak = 0
        registry = EngineRegistry()

        @registry.register_function("tracked")
        async def _tracked(_: dict[str, object]) -> dict[str, object]:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return {"success": True}

        runner = ScenarioTestRunner(registry, max_parallel=2)
        outcomes = await runner.execute_parallel([{"scenario": "tracked"}] * 6)
        assert len(outcomes) == 6
        assert peak <= 2

    @pytest.mark.asyncio
    async def test_batch_timeout_applies_per_request(self) -> None:
        registry = EngineRegistry()
        registry.register("slow", SleepyEngine(5))
        registry.register("fast", SleepyEngine(0))
        runner = ScenarioTestRunner(registry)

        outcomes = await runner.execute_parallel([{"scenario": "slow"}, {"scenario": "fast"}], timeout_ms=50)
        assert outcomes[0].error_kind == OutcomeErrorKind.TIMEOUT
        assert outcomes[1].success is True

    @pytest.mark.asyncio
    async def test_empty_batch(self, runner: ScenarioTestRunner) -> None:
        assert await runner.execute_parallel([]) == []


class TestRunnerProperties:
    @settings(max_examples=50, deadline=None)
    @given(name=st.text(max_size=20).filter(lambda value: value not in {"always-pass", "always-fail"}))
    def test_property_unregistered_names_never_raise(self, name: str) -> None:
        """execute() turns any unregistered name into a failed outcome."""
        runner = ScenarioTestRunner(EngineRegistry())
        outcome = asyncio.run(runner.execute(name))
        assert outcome.success is False
        assert outcome.scenario == name
        assert outcome.message == f"unknown scenario: {name}"
