"""Exceptions raised by the scenario validation core.

Scenario failures never surface as exceptions; they are normalized into
failed outcomes by the runner. Only infrastructure faults (environments that
could not be set up or torn down) and configuration problems are raised.
"""

from __future__ import annotations


class ProvingGroundError(Exception):
    """Base exception for the validation core."""

    pass


class EnvironmentFault(ProvingGroundError):
    """Raised when an isolated environment cannot be managed."""

    def __init__(self, environment_id: str, scenario: str, message: str) -> None:
        self.environment_id = environment_id
        self.scenario = scenario
        super().__init__(message)


class EnvironmentSetupError(EnvironmentFault):
    """Raised when scenario-specific setup fails during environment creation."""


class EnvironmentCleanupError(EnvironmentFault):
    """Raised when teardown fails; the environment stays tracked as failed."""


class EnvironmentNotFoundError(EnvironmentFault, LookupError):
    """Raised when cleanup targets an environment that is not tracked."""

    def __init__(self, environment_id: str, scenario: str) -> None:
        super().__init__(environment_id, scenario, f"Environment '{environment_id}' is not tracked")


class ScenarioTimeoutError(ProvingGroundError, TimeoutError):
    """Raised when a scenario does not finish inside its time budget."""

    def __init__(self, scenario: str, timeout_ms: int) -> None:
        self.scenario = scenario
        self.timeout_ms = timeout_ms
        super().__init__(f"scenario timed out after {timeout_ms}ms")


class ConfigLoadError(ValueError):
    """Raised when configuration YAML cannot be parsed."""
