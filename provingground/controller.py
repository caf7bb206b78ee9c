"""Top-level façade coordinating environments, runner and reports."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone

from provingground.config.models import ProvingGroundConfig
from provingground.engines.registry import EngineRegistry
from provingground.environment.manager import EnvironmentManager
from provingground.environment.store import EnvironmentStore
from provingground.models import (
    ControllerHealth,
    EnvironmentConfig,
    HealthStatus,
    OutcomeErrorKind,
    ScenarioName,
    ValidationContext,
    ValidationOutcome,
    ValidationReport,
)
from provingground.report_generator import ReportGenerator
from provingground.runner import TestRunner

logger = logging.getLogger(__name__)


class ValidationController:
    """Run scenarios inside tracked environments and aggregate their outcomes."""

    def __init__(
        self,
        environments: EnvironmentManager,
        runner: TestRunner,
        *,
        report_generator: ReportGenerator | None = None,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self._environments = environments
        self._runner = runner
        self._report_generator = report_generator or ReportGenerator()
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))
        self._runs_started = 0
        self._runs_completed = 0
        self._runs_in_progress = 0
        self._infrastructure_faults = 0
        self._last_run_faulted = False
        self._last_run_at: datetime | None = None

    @classmethod
    def from_config(
        cls,
        config: ProvingGroundConfig,
        registry: EngineRegistry,
        *,
        store: EnvironmentStore | None = None,
        now_fn: Callable[[], datetime] | None = None,
    ) -> ValidationController:
        """Wire manager, runner and controller from one config object."""
        environments = EnvironmentManager.from_settings(config.environment, store=store, now_fn=now_fn)
        runner = TestRunner.from_settings(registry, config.runner, now_fn=now_fn)
        return cls(environments, runner, now_fn=now_fn)

    @property
    def environments(self) -> EnvironmentManager:
        return self._environments

    @property
    def runner(self) -> TestRunner:
        return self._runner

    async def run_scenario(
        self,
        name: ScenarioName,
        context: ValidationContext | None = None,
        *,
        config: EnvironmentConfig | None = None,
    ) -> ValidationOutcome:
        """Run one scenario in a fresh environment that is always cleaned up.

        Environment setup and teardown failures propagate to the caller. Any
        error from the execution itself becomes a failed outcome. The
        returned timestamps span the whole call, environment work included.
        """
        env_config = config or EnvironmentConfig(scenario=name)
        if env_config.scenario != name:
            raise ValueError(f"environment config is for '{env_config.scenario}', not '{name}'")

        started_at = self._now_fn()
        self._runs_started += 1
        self._runs_in_progress += 1
        try:
            environment = await self._environments.create(env_config)
            try:
                outcome = await self._execute(name, context, env_config)
            except Exception as exc:
                logger.exception("Unexpected error while running scenario %s", name)
                outcome = ValidationOutcome(
                    scenario=name,
                    success=False,
                    message=f"scenario execution failed: {exc}",
                    started_at=started_at,
                    finished_at=max(self._now_fn(), started_at),
                    error_kind=OutcomeErrorKind.ENGINE_ERROR,
                )
            finally:
                await self._environments.cleanup(environment)
        except Exception:
            self._infrastructure_faults += 1
            self._last_run_faulted = True
            raise
        finally:
            self._runs_in_progress -= 1
            self._last_run_at = self._now_fn()

        self._runs_completed += 1
        self._last_run_faulted = False
        return ValidationOutcome(
            **outcome.model_dump(exclude={"started_at", "finished_at", "duration_ms"}),
            started_at=started_at,
            finished_at=max(self._now_fn(), started_at),
        )

    async def run_all(
        self,
        names: Sequence[ScenarioName],
        contexts: Mapping[ScenarioName, ValidationContext] | None = None,
    ) -> list[ValidationOutcome]:
        """Run scenarios one after another; every name yields exactly one outcome."""
        outcomes: list[ValidationOutcome] = []
        for name in names:
            context = (contexts or {}).get(name)
            started_at = self._now_fn()
            try:
                outcome = await self.run_scenario(name, context)
            except Exception as exc:
                logger.error("Failed to execute scenario %s: %s", name, exc)
                outcome = ValidationOutcome(
                    scenario=name,
                    success=False,
                    message=f"failed to execute {name}: {exc}",
                    started_at=started_at,
                    finished_at=max(self._now_fn(), started_at),
                    error_kind=OutcomeErrorKind.INFRASTRUCTURE,
                )
            outcomes.append(outcome)
        return outcomes

    def build_report(self, outcomes: Sequence[ValidationOutcome]) -> ValidationReport:
        return self._report_generator.generate_validation_report(outcomes, generated_at=self._now_fn())

    async def check_health(self) -> ControllerHealth:
        """Report the controller's own liveness; environments are not scanned."""
        return ControllerHealth(
            status=HealthStatus.DEGRADED if self._last_run_faulted else HealthStatus.HEALTHY,
            last_checked_at=self._now_fn(),
            runs_started=self._runs_started,
            runs_completed=self._runs_completed,
            runs_in_progress=self._runs_in_progress,
            infrastructure_faults=self._infrastructure_faults,
            last_run_at=self._last_run_at,
        )

    async def _execute(
        self,
        name: ScenarioName,
        context: ValidationContext | None,
        env_config: EnvironmentConfig,
    ) -> ValidationOutcome:
        timeout_ms = env_config.resource_limits.timeout_ms
        if timeout_ms is None:
            return await self._runner.execute(name, context)
        return await self._runner.execute_with_timeout(name, context, timeout_ms)
