"""Core data models for scenario validation runs."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

ScenarioName = str
ValidationContext = dict[str, Any]


class OutcomeErrorKind(str, Enum):
    """Why a failed outcome failed, when the failure was not a plain engine verdict."""

    ENGINE_ERROR = "engine_error"
    TIMEOUT = "timeout"
    UNKNOWN_SCENARIO = "unknown_scenario"
    INVALID_RESULT = "invalid_result"
    INFRASTRUCTURE = "infrastructure"


class ValidationOutcome(BaseModel):
    """Immutable result of one scenario run."""

    model_config = ConfigDict(frozen=True)

    scenario: ScenarioName
    success: bool
    message: str = ""
    started_at: datetime
    finished_at: datetime
    metrics: dict[str, float] = Field(default_factory=dict)
    error_kind: OutcomeErrorKind | None = None

    @model_validator(mode="after")
    def _check_time_order(self) -> ValidationOutcome:
        if self.finished_at < self.started_at:
            raise ValueError("finished_at must not be earlier than started_at")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_ms(self) -> int:
        return (self.finished_at - self.started_at) // timedelta(milliseconds=1)


class EngineResult(BaseModel):
    """Return shape of a scenario engine's validate call.

    Mapping results are validated through this model, so ``success`` follows
    pydantic's bool parsing (``"false"`` is a failure, ``"maybe"`` is rejected)
    and non-numeric metrics are dropped.
    """

    success: bool
    message: str = ""
    metrics: dict[str, float] = Field(default_factory=dict)

    @field_validator("message", mode="before")
    @classmethod
    def _default_message(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("metrics", mode="before")
    @classmethod
    def _keep_numeric_metrics(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            return value
        return {str(name): metric for name, metric in value.items() if isinstance(metric, (int, float))}


class ScenarioRequest(BaseModel):
    """One entry of a parallel execution batch."""

    scenario: ScenarioName
    context: ValidationContext = Field(default_factory=dict)


class EnvironmentStatus(str, Enum):
    """Lifecycle state of a tracked environment."""

    ACTIVE = "active"
    CLEANUP = "cleanup"
    FAILED = "failed"


class IsolationLevel(str, Enum):
    """Requested isolation strength for an environment."""

    PROCESS = "process"
    CONTAINER = "container"
    VM = "vm"


class ResourceLimits(BaseModel):
    """Optional resource ceilings for one environment."""

    memory_mb: int | None = Field(default=None, ge=1)
    cpu: float | None = Field(default=None, gt=0)
    timeout_ms: int | None = Field(default=None, ge=1)


class EnvironmentConfig(BaseModel):
    """Request for a new isolated environment."""

    scenario: ScenarioName = Field(..., min_length=1)
    isolation_level: IsolationLevel = IsolationLevel.PROCESS
    resource_limits: ResourceLimits = Field(default_factory=ResourceLimits)


class Environment(BaseModel):
    """Handle to an isolated execution context for one scenario run."""

    id: str = Field(..., min_length=1)
    scenario: ScenarioName = Field(..., min_length=1)
    status: EnvironmentStatus = EnvironmentStatus.ACTIVE
    created_at: datetime


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"


class EnvironmentHealth(BaseModel):
    """Point-in-time health of the tracked environment set."""

    status: HealthStatus
    active_environments: int = Field(..., ge=0)
    healthy_environments: int = Field(..., ge=0)
    failed_environments: int = Field(..., ge=0)
    last_checked_at: datetime


class IssueKind(str, Enum):
    FAILED = "failed"
    LEAK = "leak"
    RESOURCE_EXHAUSTION = "resource_exhaustion"


class IssueSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EnvironmentIssue(BaseModel):
    """Problem found by one environment scan."""

    environment_id: str
    kind: IssueKind
    severity: IssueSeverity
    message: str
    detected_at: datetime


class EnvironmentRecord(BaseModel):
    """Serializable bookkeeping for one tracked environment."""

    id: str = Field(..., min_length=1)
    scenario: ScenarioName = Field(..., min_length=1)
    status: EnvironmentStatus
    created_at: datetime


class EnvironmentSnapshot(BaseModel):
    """Capture of every tracked environment at one instant."""

    captured_at: datetime
    environments: list[EnvironmentRecord] = Field(default_factory=list)
    total_count: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_count(self) -> EnvironmentSnapshot:
        if self.total_count != len(self.environments):
            raise ValueError("total_count must equal the number of environment records")
        return self


class ReportSummary(BaseModel):
    total: int = Field(..., ge=0)
    passed: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    success_rate: float = Field(..., ge=0.0, le=100.0)


class ValidationReport(BaseModel):
    """Aggregate over a list of validation outcomes."""

    summary: ReportSummary
    outcomes: list[ValidationOutcome] = Field(default_factory=list)
    generated_at: datetime
    recommendations: list[str] = Field(default_factory=list)


class ControllerHealth(BaseModel):
    """Liveness report of a validation controller."""

    status: HealthStatus
    last_checked_at: datetime
    runs_started: int = Field(default=0, ge=0)
    runs_completed: int = Field(default=0, ge=0)
    runs_in_progress: int = Field(default=0, ge=0)
    infrastructure_faults: int = Field(default=0, ge=0)
    last_run_at: datetime | None = None
