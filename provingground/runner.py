"""Scenario execution: engine dispatch, timeouts and parallel batches."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from provingground.config.models import RunnerSettings
from provingground.engines.interfaces import ScenarioEngine
from provingground.engines.registry import EngineRegistry
from provingground.errors import ScenarioTimeoutError
from provingground.models import (
    EngineResult,
    OutcomeErrorKind,
    ScenarioName,
    ScenarioRequest,
    ValidationContext,
    ValidationOutcome,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000


class TestRunner:
    """Resolve scenarios to engines and normalize every run into an outcome.

    Engine exceptions, unknown scenarios, malformed engine results and
    timeouts all become failed outcomes; nothing but task cancellation
    escapes ``execute``.

    Timeouts stop waiting; they do not guarantee the engine stopped. Async
    engines are cancelled when ``cancel_on_timeout`` is set, but synchronous
    engines run in a worker thread that cannot be interrupted and keep
    running in the background until they return.
    """

    __test__ = False

    def __init__(
        self,
        registry: EngineRegistry | None = None,
        *,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_parallel: int | None = None,
        cancel_on_timeout: bool = True,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        if default_timeout_ms < 1:
            raise ValueError("default_timeout_ms must be >= 1")
        if max_parallel is not None and max_parallel < 1:
            raise ValueError("max_parallel must be a positive integer")
        self._registry = registry if registry is not None else EngineRegistry()
        self._default_timeout_ms = default_timeout_ms
        self._max_parallel = max_parallel
        self._cancel_on_timeout = cancel_on_timeout
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))
        self._abandoned: set[asyncio.Task[ValidationOutcome]] = set()

    @classmethod
    def from_settings(
        cls,
        registry: EngineRegistry,
        settings: RunnerSettings,
        *,
        now_fn: Callable[[], datetime] | None = None,
    ) -> TestRunner:
        return cls(
            registry,
            default_timeout_ms=settings.default_timeout_ms,
            max_parallel=settings.max_parallel,
            cancel_on_timeout=settings.cancel_on_timeout,
            now_fn=now_fn,
        )

    @property
    def registry(self) -> EngineRegistry:
        return self._registry

    async def execute(self, scenario: ScenarioName, context: ValidationContext | None = None) -> ValidationOutcome:
        """Run one scenario on its registered engine."""
        started_at = self._now_fn()
        engine = self._registry.get(scenario)
        if engine is None:
            logger.warning("No engine registered for scenario %s", scenario)
            return self._failed(scenario, started_at, f"unknown scenario: {scenario}", OutcomeErrorKind.UNKNOWN_SCENARIO)

        try:
            raw = await self._invoke(engine, context if context is not None else {})
        except Exception as exc:
            logger.warning("Scenario %s raised %s: %s", scenario, type(exc).__name__, exc)
            return self._failed(scenario, started_at, f"scenario execution failed: {exc}", OutcomeErrorKind.ENGINE_ERROR)

        try:
            result = _normalize_result(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Scenario %s returned an invalid result: %s", scenario, exc)
            return self._failed(scenario, started_at, f"invalid engine result: {exc}", OutcomeErrorKind.INVALID_RESULT)

        return ValidationOutcome(
            scenario=scenario,
            success=result.success,
            message=result.message or f"Executed {scenario}",
            started_at=started_at,
            finished_at=max(self._now_fn(), started_at),
            metrics=result.metrics,
        )

    async def execute_with_timeout(
        self,
        scenario: ScenarioName,
        context: ValidationContext | None = None,
        timeout_ms: int | None = None,
    ) -> ValidationOutcome:
        """Race one execution against a timer; expiry yields a timeout outcome."""
        budget = self._default_timeout_ms if timeout_ms is None else timeout_ms
        if budget < 1:
            raise ValueError("timeout_ms must be >= 1")
        started_at = self._now_fn()
        task = asyncio.create_task(self.execute(scenario, context), name=f"scenario-{scenario}")
        try:
            done, _ = await asyncio.wait({task}, timeout=budget / 1000.0)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done:
            return task.result()

        if self._cancel_on_timeout:
            task.cancel()
        else:
            self._abandoned.add(task)
            task.add_done_callback(self._abandoned.discard)
        error = ScenarioTimeoutError(scenario, budget)
        logger.warning("Scenario %s: %s", scenario, error)
        return self._failed(scenario, started_at, str(error), OutcomeErrorKind.TIMEOUT)

    async def execute_parallel(
        self,
        requests: Sequence[ScenarioRequest | Mapping[str, Any]],
        *,
        timeout_ms: int | None = None,
    ) -> list[ValidationOutcome]:
        """Run requests concurrently; outcomes keep the order of ``requests``."""
        normalized = [
            request if isinstance(request, ScenarioRequest) else ScenarioRequest.model_validate(request)
            for request in requests
        ]
        semaphore = asyncio.Semaphore(self._max_parallel) if self._max_parallel is not None else None

        async def _run_one(request: ScenarioRequest) -> ValidationOutcome:
            if semaphore is None:
                return await self._dispatch(request, timeout_ms)
            async with semaphore:
                return await self._dispatch(request, timeout_ms)

        outcomes = await asyncio.gather(*(_run_one(request) for request in normalized))
        return list(outcomes)

    async def _dispatch(self, request: ScenarioRequest, timeout_ms: int | None) -> ValidationOutcome:
        if timeout_ms is None:
            return await self.execute(request.scenario, request.context)
        return await self.execute_with_timeout(request.scenario, request.context, timeout_ms)

    @staticmethod
    async def _invoke(engine: ScenarioEngine, context: ValidationContext) -> Any:
        validate = engine.validate
        if inspect.iscoroutinefunction(validate):
            return await validate(context)
        result = await asyncio.to_thread(validate, context)
        return await result if inspect.isawaitable(result) else result

    def _failed(
        self,
        scenario: ScenarioName,
        started_at: datetime,
        message: str,
        error_kind: OutcomeErrorKind,
    ) -> ValidationOutcome:
        return ValidationOutcome(
            scenario=scenario,
            success=False,
            message=message,
            started_at=started_at,
            finished_at=max(self._now_fn(), started_at),
            metrics={},
            error_kind=error_kind,
        )


def _normalize_result(raw: Any) -> EngineResult:
    if isinstance(raw, EngineResult):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"engine must return EngineResult or a mapping, got {type(raw).__name__}")
    return EngineResult.model_validate(dict(raw))
