"""Isolated environment tracking."""

from provingground.environment.hooks import EnvironmentHook, LoggingEnvironmentHook, WorkspaceEnvironmentHook
from provingground.environment.manager import DEFAULT_LEAK_THRESHOLD, EnvironmentManager
from provingground.environment.store import EnvironmentStore

__all__ = [
    "DEFAULT_LEAK_THRESHOLD",
    "EnvironmentHook",
    "EnvironmentManager",
    "EnvironmentStore",
    "LoggingEnvironmentHook",
    "WorkspaceEnvironmentHook",
]
