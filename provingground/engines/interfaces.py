"""Protocol interface for scenario engines."""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, Protocol, Union

from provingground.models import EngineResult, ValidationContext

EngineOutput = Union[EngineResult, Mapping[str, Any]]


class ScenarioEngine(Protocol):
    """Validation strategy for one scenario kind.

    ``validate`` may be a plain method or a coroutine. It returns an
    ``EngineResult`` (or a mapping with ``success``, ``message`` and
    ``metrics``) and must not touch environment lifecycle state.
    """

    def validate(self, context: ValidationContext) -> EngineOutput | Awaitable[EngineOutput]:
        """Run the scenario against the given context."""
