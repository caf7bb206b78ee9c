"""Configuration models for provingground."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentSettings(BaseModel):
    """Environment manager configuration."""

    leak_threshold_seconds: float = Field(default=300.0, gt=0.0)
    max_active_environments: int | None = Field(default=None, ge=1)
    workspace_root: str | None = Field(default=None, description="Parent directory for per-environment workspaces.")


class RunnerSettings(BaseModel):
    """Test runner configuration."""

    default_timeout_ms: int = Field(default=30000, ge=1)
    max_parallel: int | None = Field(default=None, ge=1)
    cancel_on_timeout: bool = True


class EngineSettings(BaseModel):
    """Defaults for the bundled reference engines."""

    min_passing_checks: int | None = Field(default=None, ge=1)
    max_complexity: int = Field(default=50, ge=0)


class ProvingGroundConfig(BaseSettings):
    """Root configuration model for provingground."""

    environment: EnvironmentSettings = Field(default_factory=EnvironmentSettings)
    runner: RunnerSettings = Field(default_factory=RunnerSettings)
    engines: EngineSettings = Field(default_factory=EngineSettings)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="PROVINGGROUND_",
        env_nested_delimiter="__",
        extra="ignore",
    )
