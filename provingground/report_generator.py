"""Report aggregation and export for validation outcomes."""

from __future__ import annotations

import html
import json
from collections.abc import Sequence
from datetime import datetime

from provingground.models import ReportSummary, ValidationOutcome, ValidationReport


class ReportGenerator:
    """Aggregate outcomes into reports and render them for presentation layers."""

    def generate_validation_report(
        self,
        outcomes: Sequence[ValidationOutcome],
        *,
        generated_at: datetime,
    ) -> ValidationReport:
        """Build one report; pure given the same outcomes and timestamp."""
        total = len(outcomes)
        passed = sum(1 for outcome in outcomes if outcome.success)
        failed = total - passed
        success_rate = (passed / total) * 100.0 if total > 0 else 0.0
        return ValidationReport(
            summary=ReportSummary(total=total, passed=passed, failed=failed, success_rate=success_rate),
            outcomes=list(outcomes),
            generated_at=generated_at,
            recommendations=self._build_recommendations(outcomes),
        )

    def export_report(self, report: ValidationReport, format_name: str) -> str:
        """Export report as JSON, HTML or Markdown text."""
        normalized = format_name.strip().lower()
        if normalized == "json":
            return json.dumps(report.model_dump(mode="json"), ensure_ascii=False, indent=2, sort_keys=True)
        if normalized == "html":
            return self._to_html(report)
        if normalized in {"markdown", "md"}:
            return self._to_markdown(report)
        raise ValueError(f"unsupported report format: {format_name}")

    @staticmethod
    def _build_recommendations(outcomes: Sequence[ValidationOutcome]) -> list[str]:
        return [f"fix {outcome.scenario}: {outcome.message}" for outcome in outcomes if not outcome.success]

    def _to_html(self, report: ValidationReport) -> str:
        summary = report.summary
        rows = "".join(
            "<tr><td>"
            + html.escape(outcome.scenario)
            + "</td><td>"
            + ("passed" if outcome.success else "failed")
            + "</td><td>"
            + str(outcome.duration_ms)
            + "</td><td>"
            + html.escape(outcome.message)
            + "</td></tr>"
            for outcome in report.outcomes
        )
        recommendations = "".join(f"<li>{html.escape(item)}</li>" for item in report.recommendations)
        return (
            "<!doctype html>"
            "<html><head><meta charset='utf-8'><title>Validation Report</title></head><body>"
            "<h1>Validation Report</h1>"
            f"<p>Generated at {report.generated_at.isoformat()}</p>"
            f"<p>{summary.passed}/{summary.total} passed ({summary.success_rate:.1f}%)</p>"
            "<table><tr><th>Scenario</th><th>Status</th><th>Duration (ms)</th><th>Message</th></tr>"
            + rows
            + "</table><h2>Recommendations</h2><ul>"
            + recommendations
            + "</ul></body></html>"
        )

    def _to_markdown(self, report: ValidationReport) -> str:
        summary = report.summary
        lines = [
            "# Validation Report",
            "",
            f"Generated at {report.generated_at.isoformat()}",
            "",
            f"- Total: {summary.total}",
            f"- Passed: {summary.passed}",
            f"- Failed: {summary.failed}",
            f"- Success rate: {summary.success_rate:.1f}%",
            "",
            "| Scenario | Status | Duration (ms) | Message |",
            "| --- | --- | --- | --- |",
        ]
        for outcome in report.outcomes:
            status = "passed" if outcome.success else "failed"
            message = outcome.message.replace("|", "\\|")
            lines.append(f"| {outcome.scenario} | {status} | {outcome.duration_ms} | {message} |")
        if report.recommendations:
            lines.extend(["", "## Recommendations", ""])
            lines.extend(f"- {item}" for item in report.recommendations)
        return "\n".join(lines) + "\n"
