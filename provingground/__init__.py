"""Scenario validation orchestration: isolated environments, pluggable engines, reports."""

from provingground.config import ProvingGroundConfig, load_config
from provingground.controller import ValidationController
from provingground.engines import CallableEngine, CodeComplexityEngine, EngineRegistry, ScenarioEngine, ThresholdEngine
from provingground.environment import (
    EnvironmentHook,
    EnvironmentManager,
    EnvironmentStore,
    LoggingEnvironmentHook,
    WorkspaceEnvironmentHook,
)
from provingground.errors import (
    ConfigLoadError,
    EnvironmentCleanupError,
    EnvironmentFault,
    EnvironmentNotFoundError,
    EnvironmentSetupError,
    ProvingGroundError,
    ScenarioTimeoutError,
)
from provingground.models import (
    ControllerHealth,
    EngineResult,
    Environment,
    EnvironmentConfig,
    EnvironmentHealth,
    EnvironmentIssue,
    EnvironmentRecord,
    EnvironmentSnapshot,
    EnvironmentStatus,
    HealthStatus,
    IsolationLevel,
    IssueKind,
    IssueSeverity,
    OutcomeErrorKind,
    ReportSummary,
    ResourceLimits,
    ScenarioRequest,
    ValidationOutcome,
    ValidationReport,
)
from provingground.report_generator import ReportGenerator
from provingground.runner import TestRunner

__version__ = "0.1.0"

__all__ = [
    "CallableEngine",
    "CodeComplexityEngine",
    "ConfigLoadError",
    "ControllerHealth",
    "EngineRegistry",
    "EngineResult",
    "Environment",
    "EnvironmentCleanupError",
    "EnvironmentConfig",
    "EnvironmentFault",
    "EnvironmentHealth",
    "EnvironmentHook",
    "EnvironmentIssue",
    "EnvironmentManager",
    "EnvironmentNotFoundError",
    "EnvironmentRecord",
    "EnvironmentSetupError",
    "EnvironmentSnapshot",
    "EnvironmentStatus",
    "EnvironmentStore",
    "HealthStatus",
    "IsolationLevel",
    "IssueKind",
    "IssueSeverity",
    "LoggingEnvironmentHook",
    "OutcomeErrorKind",
    "ProvingGroundConfig",
    "ProvingGroundError",
    "ReportGenerator",
    "ReportSummary",
    "ResourceLimits",
    "ScenarioEngine",
    "ScenarioRequest",
    "ScenarioTimeoutError",
    "TestRunner",
    "ThresholdEngine",
    "ValidationController",
    "ValidationOutcome",
    "ValidationReport",
    "WorkspaceEnvironmentHook",
    "load_config",
]
