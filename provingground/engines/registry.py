"""Registration table mapping scenario names to engines."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from typing import Any

from provingground.engines.interfaces import EngineOutput, ScenarioEngine
from provingground.models import ScenarioName, ValidationContext

EngineFn = Callable[[ValidationContext], Any]


class CallableEngine:
    """Adapt a plain or async function to the engine contract."""

    def __init__(self, fn: EngineFn) -> None:
        if not callable(fn):
            raise TypeError("engine function must be callable")
        self._fn = fn

    def validate(self, context: ValidationContext) -> EngineOutput | Awaitable[EngineOutput]:
        return self._fn(context)

    def __repr__(self) -> str:
        return f"CallableEngine({getattr(self._fn, '__name__', self._fn)!r})"


class EngineRegistry:
    """Scenario name -> engine table populated at startup."""

    def __init__(self) -> None:
        self._engines: dict[ScenarioName, ScenarioEngine] = {}

    def register(self, scenario: ScenarioName, engine: ScenarioEngine) -> None:
        name = self._normalize(scenario)
        if not callable(getattr(engine, "validate", None)):
            raise TypeError(f"engine for '{name}' must define validate(context)")
        if name in self._engines:
            raise ValueError(f"Engine for scenario '{name}' already registered")
        self._engines[name] = engine

    def register_function(self, scenario: ScenarioName) -> Callable[[EngineFn], EngineFn]:
        """Decorator registering a function as the engine for one scenario."""

        def decorator(fn: EngineFn) -> EngineFn:
            self.register(scenario, CallableEngine(fn))
            return fn

        return decorator

    def unregister(self, scenario: ScenarioName) -> bool:
        return self._engines.pop(_lookup_key(scenario), None) is not None

    def get(self, scenario: ScenarioName) -> ScenarioEngine | None:
        return self._engines.get(_lookup_key(scenario))

    def names(self) -> list[ScenarioName]:
        return list(self._engines)

    def __contains__(self, scenario: object) -> bool:
        return isinstance(scenario, str) and _lookup_key(scenario) in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    def __iter__(self) -> Iterator[ScenarioName]:
        return iter(list(self._engines))

    @staticmethod
    def _normalize(scenario: ScenarioName) -> ScenarioName:
        if not isinstance(scenario, str) or not scenario.strip():
            raise ValueError("scenario must be a non-empty string")
        return scenario.strip()


def _lookup_key(scenario: ScenarioName) -> ScenarioName:
    return scenario.strip()

