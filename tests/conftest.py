"""Shared test fixtures for provingground."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from provingground.engines.registry import EngineRegistry
from provingground.environment.manager import EnvironmentManager
from provingground.environment.store import EnvironmentStore
from provingground.controller import ValidationController
from provingground.models import EngineResult
from provingground.runner import TestRunner as ScenarioTestRunner


class ManualClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def registry() -> EngineRegistry:
    """Registry with one passing and one failing engine."""
    table = EngineRegistry()

    @table.register_function("always-pass")
    def _always_pass(_: dict[str, object]) -> EngineResult:
        return EngineResult(success=True, message="ok", metrics={})

    @table.register_function("always-fail")
    async def _always_fail(_: dict[str, object]) -> dict[str, object]:
        return {"success": False, "message": "threshold missed", "metrics": {"score": 1}}

    return table


@pytest.fixture
def store() -> EnvironmentStore:
    return EnvironmentStore()


@pytest.fixture
def manager(store: EnvironmentStore) -> EnvironmentManager:
    return EnvironmentManager(store)


@pytest.fixture
def runner(registry: EngineRegistry) -> ScenarioTestRunner:
    return ScenarioTestRunner(registry)


@pytest.fixture
def controller(manager: EnvironmentManager, runner: ScenarioTestRunner) -> ValidationController:
    return ValidationController(manager, runner)
