"""Reference engine comparing measured metrics against target thresholds."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from provingground.config.models import EngineSettings
from provingground.models import EngineResult, ValidationContext

AT_MOST = "at_most"
AT_LEAST = "at_least"


class ThresholdEngine:
    """Pass when enough measurements meet their targets.

    Context keys:
      ``measurements``: metric name -> measured number.
      ``targets``: metric name -> number (an upper bound) or
        ``{"value": number, "direction": "at_most" | "at_least"}``.
      ``min_passing_checks``: optional override of the passing quota.

    A target with no matching measurement counts as a failed check. Without a
    quota every check must pass.
    """

    def __init__(
        self,
        *,
        default_targets: Mapping[str, Any] | None = None,
        min_passing_checks: int | None = None,
    ) -> None:
        self._default_targets = dict(default_targets or {})
        self._min_passing_checks = _check_quota(min_passing_checks)

    @classmethod
    def from_settings(cls, settings: EngineSettings, *, default_targets: Mapping[str, Any] | None = None) -> ThresholdEngine:
        return cls(default_targets=default_targets, min_passing_checks=settings.min_passing_checks)

    def validate(self, context: ValidationContext) -> EngineResult:
        measurements = context.get("measurements") or {}
        if not isinstance(measurements, Mapping):
            raise TypeError("measurements must be a mapping of metric name to number")
        targets = {**self._default_targets, **(context.get("targets") or {})}
        if not targets:
            return EngineResult(success=False, message="no targets configured", metrics={})

        failures: list[str] = []
        for name, spec in targets.items():
            limit, direction = _parse_target(name, spec)
            measured = measurements.get(name)
            if measured is None:
                failures.append(f"{name} not measured")
                continue
            value = float(measured)
            if direction == AT_MOST and value > limit:
                failures.append(f"{name}={value:g} above {limit:g}")
            elif direction == AT_LEAST and value < limit:
                failures.append(f"{name}={value:g} below {limit:g}")

        total = len(targets)
        passed = total - len(failures)
        quota = _check_quota(context.get("min_passing_checks", self._min_passing_checks))
        required = total if quota is None else min(quota, total)
        success = passed >= required

        message = f"{passed}/{total} checks passed (required {required})"
        if failures:
            message = f"{message}: {'; '.join(failures)}"
        metrics = {str(name): float(value) for name, value in measurements.items() if _is_number(value)}
        metrics.update(
            {
                "checks_passed": float(passed),
                "checks_total": float(total),
                "checks_required": float(required),
            }
        )
        return EngineResult(success=success, message=message, metrics=metrics)


def _parse_target(name: str, spec: Any) -> tuple[float, str]:
    if isinstance(spec, Mapping):
        if "value" not in spec:
            raise ValueError(f"target '{name}' is missing 'value'")
        direction = str(spec.get("direction", AT_MOST)).strip().lower()
        if direction not in {AT_MOST, AT_LEAST}:
            raise ValueError(f"target '{name}' has unsupported direction: {direction}")
        return float(spec["value"]), direction
    if not _is_number(spec):
        raise ValueError(f"target '{name}' must be a number or mapping")
    return float(spec), AT_MOST


def _check_quota(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or int(value) < 1:
        raise ValueError(f"min_passing_checks must be a positive integer, got {value!r}")
    return int(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
