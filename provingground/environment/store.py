"""Lock-guarded registry of tracked environments."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from provingground.models import Environment, EnvironmentStatus


class EnvironmentStore:
    """In-memory id -> environment map whose mutations are serialized by one lock.

    Several managers may share one store; each store instance is independent,
    so tests can run any number of isolated stores in the same process.
    """

    def __init__(self) -> None:
        self._environments: dict[str, Environment] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._environments)

    def __contains__(self, environment_id: object) -> bool:
        return environment_id in self._environments

    def get(self, environment_id: str) -> Environment | None:
        return self._environments.get(environment_id)

    def values(self) -> list[Environment]:
        """Return tracked environments in insertion order."""
        return list(self._environments.values())

    async def add(self, environment: Environment) -> None:
        async with self._lock:
            if environment.id in self._environments:
                raise ValueError(f"Environment '{environment.id}' is already tracked")
            self._environments[environment.id] = environment

    async def remove(self, environment_id: str) -> Environment | None:
        async with self._lock:
            return self._environments.pop(environment_id, None)

    async def set_status(self, environment_id: str, status: EnvironmentStatus) -> Environment | None:
        async with self._lock:
            environment = self._environments.get(environment_id)
            if environment is not None:
                environment.status = status
            return environment

    async def clear(self) -> int:
        async with self._lock:
            count = len(self._environments)
            self._environments.clear()
            return count

    async def replace(self, environments: Iterable[Environment]) -> None:
        """Swap the whole tracked set in one locked step."""
        async with self._lock:
            self._environments = {environment.id: environment for environment in environments}
