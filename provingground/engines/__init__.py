"""Scenario engine contract, registry and reference engines."""

from provingground.engines.complexity import CodeComplexityEngine, ComplexityReport, analyze_complexity
from provingground.engines.interfaces import EngineOutput, ScenarioEngine
from provingground.engines.registry import CallableEngine, EngineRegistry
from provingground.engines.threshold import ThresholdEngine

__all__ = [
    "CallableEngine",
    "CodeComplexityEngine",
    "ComplexityReport",
    "EngineOutput",
    "EngineRegistry",
    "ScenarioEngine",
    "ThresholdEngine",
    "analyze_complexity",
]
