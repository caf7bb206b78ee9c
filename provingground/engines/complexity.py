"""Reference engine scoring Python source complexity."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path

from provingground.config.models import EngineSettings
from provingground.models import EngineResult, ValidationContext

NESTED_LOOP_WEIGHT = 10
RECURSION_WEIGHT = 5
COMPOUND_MATH_WEIGHT = 2

_LOOP_NODES = (ast.For, ast.AsyncFor, ast.While)


@dataclass
class ComplexityReport:
    nested_loops: int = 0
    recursive_functions: int = 0
    compound_math: int = 0
    issues: list[str] = field(default_factory=list)

    @property
    def score(self) -> int:
        return (
            self.nested_loops * NESTED_LOOP_WEIGHT
            + self.recursive_functions * RECURSION_WEIGHT
            + self.compound_math * COMPOUND_MATH_WEIGHT
        )


class CodeComplexityEngine:
    """Score a module for nested loops, recursion and nested math calls.

    Reads ``source`` (text) or ``source_path`` from the context and passes
    when the weighted score is at most ``max_complexity``.
    """

    def __init__(self, *, max_complexity: int = 50) -> None:
        if max_complexity < 0:
            raise ValueError("max_complexity must be >= 0")
        self._max_complexity = max_complexity

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> CodeComplexityEngine:
        return cls(max_complexity=settings.max_complexity)

    def validate(self, context: ValidationContext) -> EngineResult:
        max_complexity = int(context.get("max_complexity", self._max_complexity))
        if "source" in context:
            return self.process_source(str(context["source"]), label="<source>", max_complexity=max_complexity)
        source_path = context.get("source_path")
        if not source_path:
            return EngineResult(success=False, message="context must provide 'source' or 'source_path'")
        return self.process(source_path, max_complexity=max_complexity)

    def process(self, source_path: str | Path, *, max_complexity: int | None = None) -> EngineResult:
        """Score one file on disk."""
        path = Path(source_path)
        text = path.read_text(encoding="utf-8")
        return self.process_source(text, label=str(path), max_complexity=max_complexity)

    def process_source(self, text: str, *, label: str, max_complexity: int | None = None) -> EngineResult:
        limit = self._max_complexity if max_complexity is None else max_complexity
        try:
            tree = ast.parse(text)
        except SyntaxError as exc:
            return EngineResult(success=False, message=f"Failed to parse {label}: {exc.msg} (line {exc.lineno})")

        report = analyze_complexity(tree)
        optimizations = suggest_optimizations(report)
        success = report.score <= limit
        verdict = "within" if success else "above"
        message = f"Processed {label}: complexity {report.score} {verdict} limit {limit}, {len(optimizations)} optimizations suggested"
        return EngineResult(
            success=success,
            message=message,
            metrics={
                "file_size": float(len(text)),
                "complexity": float(report.score),
                "nested_loops": float(report.nested_loops),
                "recursive_functions": float(report.recursive_functions),
                "compound_math": float(report.compound_math),
                "optimizations": float(len(optimizations)),
            },
        )


def analyze_complexity(tree: ast.AST) -> ComplexityReport:
    report = ComplexityReport()
    for node in ast.walk(tree):
        if isinstance(node, _LOOP_NODES) and _contains_inner_loop(node):
            report.nested_loops += 1
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and _calls_itself(node):
            report.recursive_functions += 1
        elif isinstance(node, ast.Call) and _is_math_call(node) and any(
            _is_math_call(inner) for arg in node.args for inner in ast.walk(arg)
        ):
            report.compound_math += 1

    if report.nested_loops:
        report.issues.append(f"{report.nested_loops} nested loops detected")
    if report.recursive_functions:
        report.issues.append(f"{report.recursive_functions} recursive functions detected")
    if report.compound_math:
        report.issues.append(f"{report.compound_math} compound math expressions detected")
    return report


def suggest_optimizations(report: ComplexityReport) -> list[str]:
    optimizations: list[str] = []
    if report.nested_loops:
        optimizations.extend(["Hoist invariant work out of inner loops", "Vectorize inner loops"])
    if report.recursive_functions:
        optimizations.extend(["Convert recursion to iteration", "Memoize recursive calls"])
    if report.compound_math:
        optimizations.extend(["Simplify nested math expressions", "Precompute lookup tables"])
    return optimizations


def _contains_inner_loop(loop: ast.AST) -> bool:
    return any(isinstance(child, _LOOP_NODES) for child in ast.walk(loop) if child is not loop)


def _calls_itself(func: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
    for node in ast.walk(func):
        if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == func.name:
            return True
    return False


def _is_math_call(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and isinstance(node.func.value, ast.Name)
        and node.func.value.id == "math"
    )
