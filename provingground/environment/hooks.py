"""Scenario-specific setup/teardown hooks for isolated environments."""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

from provingground.models import Environment, EnvironmentConfig

logger = logging.getLogger(__name__)

_UNSAFE_PREFIX_CHARS = re.compile(r"[^A-Za-z0-9_.-]")
_MAX_PREFIX_LENGTH = 64


class EnvironmentHook(Protocol):
    """Acquire and release the resources behind one environment."""

    async def setup(self, environment: Environment, config: EnvironmentConfig) -> None:
        """Prepare resources before the environment becomes active."""

    async def teardown(self, environment: Environment) -> None:
        """Release resources acquired by setup."""


class LoggingEnvironmentHook:
    """Generic fallback used for scenarios without a dedicated hook."""

    async def setup(self, environment: Environment, config: EnvironmentConfig) -> None:
        logger.debug(
            "Setting up generic environment %s (isolation=%s)",
            environment.id,
            config.isolation_level.value,
        )

    async def teardown(self, environment: Environment) -> None:
        logger.debug("Cleaning up generic environment %s", environment.id)


class WorkspaceEnvironmentHook:
    """Give every environment a private temporary directory.

    The directory is created on setup and removed with its contents on
    teardown. Teardown of an environment that never got a workspace (setup
    failed, or the record came from a restored snapshot) is a no-op.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root) if root is not None else None
        self._workspaces: dict[str, Path] = {}

    def workspace_for(self, environment_id: str) -> Path | None:
        return self._workspaces.get(environment_id)

    async def setup(self, environment: Environment, config: EnvironmentConfig) -> None:
        if self._root is not None:
            await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)
        path = await asyncio.to_thread(
            tempfile.mkdtemp,
            prefix=_workspace_prefix(environment.id),
            dir=str(self._root) if self._root is not None else None,
        )
        self._workspaces[environment.id] = Path(path)
        logger.debug("Created workspace %s for environment %s", path, environment.id)

    async def teardown(self, environment: Environment) -> None:
        path = self._workspaces.get(environment.id)
        if path is None:
            return
        await asyncio.to_thread(shutil.rmtree, path)
        del self._workspaces[environment.id]
        logger.debug("Removed workspace %s for environment %s", path, environment.id)


def _workspace_prefix(environment_id: str) -> str:
    """Directory-name-safe prefix; scenario names may contain path separators."""
    return f"{_UNSAFE_PREFIX_CHARS.sub('_', environment_id)[:_MAX_PREFIX_LENGTH]}-"

