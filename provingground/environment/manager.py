"""Lifecycle management for isolated scenario environments."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from provingground.config.models import EnvironmentSettings
from provingground.environment.hooks import EnvironmentHook, LoggingEnvironmentHook, WorkspaceEnvironmentHook
from provingground.environment.store import EnvironmentStore
from provingground.errors import EnvironmentCleanupError, EnvironmentNotFoundError, EnvironmentSetupError
from provingground.models import (
    Environment,
    EnvironmentConfig,
    EnvironmentHealth,
    EnvironmentIssue,
    EnvironmentRecord,
    EnvironmentSnapshot,
    EnvironmentStatus,
    HealthStatus,
    IssueKind,
    IssueSeverity,
    ScenarioName,
)

logger = logging.getLogger(__name__)

DEFAULT_LEAK_THRESHOLD = timedelta(minutes=5)


class EnvironmentManager:
    """Create, track, scan and tear down one environment per scenario run.

    State machine per environment: ``active`` on creation, ``cleanup`` while
    teardown runs, then removal from tracking. ``failed`` is entered when
    setup or teardown raises; failed records stay tracked until cleaned up,
    reset or restored so that ``detect_issues`` can report them.
    """

    def __init__(
        self,
        store: EnvironmentStore | None = None,
        *,
        leak_threshold: timedelta = DEFAULT_LEAK_THRESHOLD,
        max_active_environments: int | None = None,
        default_hook: EnvironmentHook | None = None,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        if leak_threshold <= timedelta(0):
            raise ValueError("leak_threshold must be positive")
        if max_active_environments is not None and max_active_environments < 1:
            raise ValueError("max_active_environments must be a positive integer")
        self._store = store if store is not None else EnvironmentStore()
        self._leak_threshold = leak_threshold
        self._max_active_environments = max_active_environments
        self._default_hook: EnvironmentHook = default_hook or LoggingEnvironmentHook()
        self._hooks: dict[ScenarioName, EnvironmentHook] = {}
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(
        cls,
        settings: EnvironmentSettings,
        *,
        store: EnvironmentStore | None = None,
        now_fn: Callable[[], datetime] | None = None,
    ) -> EnvironmentManager:
        """Build a manager from config; a workspace root enables per-environment directories."""
        default_hook: EnvironmentHook | None = None
        if settings.workspace_root:
            default_hook = WorkspaceEnvironmentHook(settings.workspace_root)
        return cls(
            store,
            leak_threshold=timedelta(seconds=settings.leak_threshold_seconds),
            max_active_environments=settings.max_active_environments,
            default_hook=default_hook,
            now_fn=now_fn,
        )

    @property
    def leak_threshold(self) -> timedelta:
        return self._leak_threshold

    def register_hook(self, scenario: ScenarioName, hook: EnvironmentHook) -> None:
        """Route setup/teardown of one scenario's environments to a dedicated hook."""
        name = scenario.strip()
        if not name:
            raise ValueError("scenario must be a non-empty string")
        self._hooks[name] = hook

    def list_environments(self) -> list[Environment]:
        return self._store.values()

    def get_environment(self, environment_id: str) -> Environment | None:
        return self._store.get(environment_id)

    async def create(self, config: EnvironmentConfig | ScenarioName) -> Environment:
        """Set up and register a new active environment for one scenario."""
        if isinstance(config, str):
            config = EnvironmentConfig(scenario=config)
        created_at = self._now_fn()
        environment = Environment(
            id=self._allocate_id(config.scenario, created_at),
            scenario=config.scenario,
            status=EnvironmentStatus.ACTIVE,
            created_at=created_at,
        )
        try:
            await self._hook_for(config.scenario).setup(environment, config)
        except Exception as exc:
            environment.status = EnvironmentStatus.FAILED
            await self._store.add(environment)
            logger.exception("Failed to set up environment %s for scenario %s", environment.id, config.scenario)
            raise EnvironmentSetupError(
                environment.id,
                config.scenario,
                f"Failed to create environment for scenario '{config.scenario}': {exc}",
            ) from exc

        await self._store.add(environment)
        logger.info("Created environment %s for scenario %s", environment.id, config.scenario)
        return environment

    async def cleanup(self, environment: Environment) -> None:
        """Tear down one environment and stop tracking it."""
        tracked = self._store.get(environment.id)
        if tracked is None:
            raise EnvironmentNotFoundError(environment.id, environment.scenario)

        await self._store.set_status(tracked.id, EnvironmentStatus.CLEANUP)
        try:
            await self._hook_for(tracked.scenario).teardown(tracked)
        except Exception as exc:
            await self._store.set_status(tracked.id, EnvironmentStatus.FAILED)
            logger.exception("Failed to clean up environment %s", tracked.id)
            raise EnvironmentCleanupError(
                tracked.id,
                tracked.scenario,
                f"Failed to clean up environment '{tracked.id}': {exc}",
            ) from exc

        await self._store.remove(tracked.id)
        logger.info("Cleaned up environment %s", tracked.id)

    async def check_health(self) -> EnvironmentHealth:
        environments = self._store.values()
        healthy = sum(1 for env in environments if env.status == EnvironmentStatus.ACTIVE)
        failed = sum(1 for env in environments if env.status == EnvironmentStatus.FAILED)
        return EnvironmentHealth(
            status=HealthStatus.HEALTHY if failed == 0 else HealthStatus.DEGRADED,
            active_environments=len(environments),
            healthy_environments=healthy,
            failed_environments=failed,
            last_checked_at=self._now_fn(),
        )

    async def detect_issues(self) -> list[EnvironmentIssue]:
        """Scan tracked environments once for failures, leaks and over-allocation.

        This is a point-in-time check; callers wanting continuous leak
        detection must invoke it periodically.
        """
        now = self._now_fn()
        environments = self._store.values()
        issues: list[EnvironmentIssue] = []
        for env in environments:
            if env.status == EnvironmentStatus.FAILED:
                issues.append(
                    EnvironmentIssue(
                        environment_id=env.id,
                        kind=IssueKind.FAILED,
                        severity=IssueSeverity.HIGH,
                        message=f"Environment {env.id} has failed status",
                        detected_at=now,
                    )
                )
            age = now - env.created_at
            if env.status == EnvironmentStatus.ACTIVE and age > self._leak_threshold:
                issues.append(
                    EnvironmentIssue(
                        environment_id=env.id,
                        kind=IssueKind.LEAK,
                        severity=IssueSeverity.MEDIUM,
                        message=f"Environment {env.id} has been active for {round(age.total_seconds() / 60)} minutes",
                        detected_at=now,
                    )
                )

        limit = self._max_active_environments
        if limit is not None and len(environments) > limit:
            overflow = sorted(environments, key=lambda env: env.created_at)[limit:]
            for env in overflow:
                issues.append(
                    EnvironmentIssue(
                        environment_id=env.id,
                        kind=IssueKind.RESOURCE_EXHAUSTION,
                        severity=IssueSeverity.HIGH,
                        message=f"Environment {env.id} exceeds the limit of {limit} tracked environments",
                        detected_at=now,
                    )
                )

        for issue in issues:
            logger.warning("Environment issue detected: %s", issue.message)
        return issues

    async def reset_all(self) -> None:
        """Best-effort cleanup of every tracked environment, then forget them all."""
        for env in self._store.values():
            try:
                await self.cleanup(env)
            except Exception as exc:
                logger.error("Failed to reset environment %s: %s", env.id, exc)
        dropped = await self._store.clear()
        logger.info("All environments have been reset (%d left over after cleanup)", dropped)

    async def snapshot(self) -> EnvironmentSnapshot:
        records = [
            EnvironmentRecord(id=env.id, scenario=env.scenario, status=env.status, created_at=env.created_at)
            for env in self._store.values()
        ]
        return EnvironmentSnapshot(captured_at=self._now_fn(), environments=records, total_count=len(records))

    async def restore(self, snapshot: EnvironmentSnapshot) -> None:
        """Reset, then rebuild bookkeeping from a snapshot.

        Setup hooks are not re-run: restored environments are records only and
        their underlying resources are not re-acquired.
        """
        await self.reset_all()
        await self._store.replace(
            Environment(id=record.id, scenario=record.scenario, status=record.status, created_at=record.created_at)
            for record in snapshot.environments
        )
        logger.info("Restored %d environments from snapshot", len(snapshot.environments))

    def _hook_for(self, scenario: ScenarioName) -> EnvironmentHook:
        return self._hooks.get(scenario, self._default_hook)

    @staticmethod
    def _allocate_id(scenario: ScenarioName, created_at: datetime) -> str:
        millis = int(created_at.timestamp() * 1000)
        return f"env-{scenario}-{millis}-{uuid.uuid4().hex[:8]}"
