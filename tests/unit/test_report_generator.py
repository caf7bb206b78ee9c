"""Unit tests for ReportGenerator."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from provingground.models import OutcomeErrorKind, ValidationOutcome
from provingground.report_generator import ReportGenerator

_NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def _outcome(scenario: str, success: bool, message: str = "", *, duration_ms: int = 10) -> ValidationOutcome:
    return ValidationOutcome(
        scenario=scenario,
        success=success,
        message=message,
        started_at=_NOW,
        finished_at=_NOW + timedelta(milliseconds=duration_ms),
        error_kind=None if success else OutcomeErrorKind.ENGINE_ERROR,
    )


@pytest.fixture
def generator() -> ReportGenerator:
    return ReportGenerator()


@pytest.fixture
def outcomes() -> list[ValidationOutcome]:
    return [
        _outcome("file-loading", True, "32ms"),
        _outcome("frame-rate", False, "58 fps < 60 | dropped frames"),
        _outcome("memory", True, "ok", duration_ms=250),
    ]


def test_generate_report_counts(generator: ReportGenerator, outcomes: list[ValidationOutcome]) -> None:
    report = generator.generate_validation_report(outcomes, generated_at=_NOW)

    assert report.summary.total == 3
    assert report.summary.passed == 2
    assert report.summary.failed == 1
    assert report.summary.success_rate == pytest.approx(200.0 / 3.0)
    assert report.outcomes == outcomes
    assert report.recommendations == ["fix frame-rate: 58 fps < 60 | dropped frames"]


def test_generate_report_is_pure(generator: ReportGenerator, outcomes: list[ValidationOutcome]) -> None:
    first = generator.generate_validation_report(outcomes, generated_at=_NOW)
    second = generator.generate_validation_report(outcomes, generated_at=_NOW)
    assert first == second


def test_export_json(generator: ReportGenerator, outcomes: list[ValidationOutcome]) -> None:
    report = generator.generate_validation_report(outcomes, generated_at=_NOW)
    payload = json.loads(generator.export_report(report, "json"))

    assert payload["summary"]["passed"] == 2
    assert payload["outcomes"][2]["duration_ms"] == 250
    assert payload["outcomes"][1]["error_kind"] == "engine_error"
    assert payload["generated_at"].startswith("2026-03-01T09:30:00")


def test_export_html_escapes_messages(generator: ReportGenerator, outcomes: list[ValidationOutcome]) -> None:
    report = generator.generate_validation_report(outcomes, generated_at=_NOW)
    rendered = generator.export_report(report, "HTML")

    assert rendered.startswith("<!doctype html>")
    assert "2/3 passed (66.7%)" in rendered
    assert "58 fps &lt; 60" in rendered
    assert "<td>frame-rate</td><td>failed</td>" in rendered


def test_export_markdown(generator: ReportGenerator, outcomes: list[ValidationOutcome]) -> None:
    report = generator.generate_validation_report(outcomes, generated_at=_NOW)
    rendered = generator.export_report(report, "markdown")

    assert rendered.startswith("# Validation Report\n")
    assert "- Success rate: 66.7%" in rendered
    assert "| memory | passed | 250 | ok |" in rendered
    assert "58 fps < 60 \\| dropped frames" in rendered
    assert "## Recommendations" in rendered
    assert generator.export_report(report, "md") == rendered


def test_export_markdown_without_failures_has_no_recommendations(generator: ReportGenerator) -> None:
    report = generator.generate_validation_report([_outcome("ok", True)], generated_at=_NOW)
    assert "Recommendations" not in generator.export_report(report, "markdown")


def test_export_unsupported_format_raises(generator: ReportGenerator) -> None:
    report = generator.generate_validation_report([], generated_at=_NOW)
    with pytest.raises(ValueError, match="unsupported report format"):
        generator.export_report(report, "pdf")
