"""Rule evaluation engine for KPI diagnostics.

This package intentionally contains only domain logic:
- Inputs are KPI values + configuration rows + a client profile.
- No storage, sheet, UI or network calls live here.
"""

from .benchmarks import BenchmarkIndex, rate, rate_all
from .config import ClientProfile, EngineConfig
from .context import AnalysisContext, build_context
from .environment import ValueEnvironment
from .expressions import ExpressionError, evaluate, parse
from .insights import run_insights
from .models import (
    AnalysisReport,
    BenchmarkResult,
    BenchmarkThreshold,
    ConfigWarning,
    InsightResult,
    InsightRule,
    KpiDefinition,
    Rating,
    ValidationIssue,
    ValidationRule,
)
from .runner import AnalysisRunner, ConfigSnapshot
from .triggers import matches
from .validation import execute, run_validation

__all__ = [
    "AnalysisContext",
    "AnalysisReport",
    "AnalysisRunner",
    "BenchmarkIndex",
    "BenchmarkResult",
    "BenchmarkThreshold",
    "ClientProfile",
    "ConfigSnapshot",
    "ConfigWarning",
    "EngineConfig",
    "ExpressionError",
    "InsightResult",
    "InsightRule",
    "KpiDefinition",
    "Rating",
    "ValidationIssue",
    "ValidationRule",
    "ValueEnvironment",
    "build_context",
    "evaluate",
    "execute",
    "matches",
    "parse",
    "rate",
    "rate_all",
    "run_insights",
    "run_validation",
]
