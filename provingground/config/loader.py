"""YAML configuration loading with environment and runtime overrides."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from provingground.config.models import ProvingGroundConfig
from provingground.errors import ConfigLoadError

ENV_PREFIX = "PROVINGGROUND_"


class YAMLConfigLoader:
    """Load provingground.yaml with deterministic path resolution."""

    DEFAULT_FILENAME = "provingground.yaml"
    PATH_ENV_VAR = "PROVINGGROUND_CONFIG"

    @classmethod
    def resolve_path(cls, cli_path: str | None = None, environ: Mapping[str, str] | None = None) -> Path:
        """Resolve config path by priority: env -> explicit -> cwd default."""
        env = os.environ if environ is None else environ
        env_path = env.get(cls.PATH_ENV_VAR, "").strip()
        if env_path:
            return Path(env_path)
        if cli_path and cli_path.strip():
            return Path(cli_path.strip())
        return Path.cwd() / cls.DEFAULT_FILENAME

    @classmethod
    def load_dict(cls, path: str | Path | None = None) -> dict[str, Any]:
        """Load YAML into dict. Missing or empty file yields empty dict."""
        target = Path(path) if path is not None else cls.resolve_path()
        if not target.exists():
            return {}
        text = target.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            if mark is not None:
                raise ConfigLoadError(
                    f"Invalid YAML at {target}:{mark.line + 1}:{mark.column + 1}"
                ) from exc
            raise ConfigLoadError(f"Invalid YAML at {target}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Config root must be mapping: {target}")
        return data


def load_config(
    config_path: str | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ProvingGroundConfig:
    """Build config from defaults + YAML + PROVINGGROUND_* env vars + runtime overrides."""
    env = dict(os.environ if environ is None else environ)
    target = YAMLConfigLoader.resolve_path(config_path, environ=env)
    merged = _deep_merge(YAMLConfigLoader.load_dict(target), _collect_env_overrides(env))
    merged = _deep_merge(merged, overrides or {})
    return ProvingGroundConfig.model_validate(merged)


def configure_logging(config: ProvingGroundConfig) -> None:
    """Set the package logger level from config. Handlers are left to the application."""
    level_name = config.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.getLogger("provingground").setLevel(int(level))


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in updates.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce_env_value(raw: str) -> Any:
    """Map explicit nulls to None; typed parsing is left to the config model."""
    value = raw.strip()
    if value.lower() in {"null", "none"}:
        return None
    return value


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, raw_value in environ.items():
        if not key.startswith(ENV_PREFIX) or key == YAMLConfigLoader.PATH_ENV_VAR:
            continue
        suffix = key[len(ENV_PREFIX) :]
        path = [part.strip().lower() for part in suffix.split("__") if part.strip()]
        if not path:
            continue
        cursor = overrides
        for part in path[:-1]:
            existing = cursor.get(part)
            if not isinstance(existing, dict):
                existing = {}
                cursor[part] = existing
            cursor = existing
        cursor[path[-1]] = _coerce_env_value(raw_value)
    return overrides
