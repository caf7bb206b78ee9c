"""Configuration for provingground."""

from provingground.config.loader import YAMLConfigLoader, configure_logging, load_config
from provingground.config.models import EngineSettings, EnvironmentSettings, ProvingGroundConfig, RunnerSettings
from provingground.errors import ConfigLoadError

__all__ = [
    "ConfigLoadError",
    "EngineSettings",
    "EnvironmentSettings",
    "ProvingGroundConfig",
    "RunnerSettings",
    "YAMLConfigLoader",
    "configure_logging",
    "load_config",
]
