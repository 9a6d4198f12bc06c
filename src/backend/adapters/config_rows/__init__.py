"""Adapters from flat configuration rows (CSV/sheet exports) to engine models (no I/O)."""

from .benchmarks import benchmark_rows_from_rows
from .insight_rules import insight_rules_from_rows
from .kpis import kpi_definitions_from_rows
from .rows import RowLoad
from .validation_rules import validation_rules_from_rows
from .values import value_environment_from_rows

__all__ = [
    "RowLoad",
    "benchmark_rows_from_rows",
    "insight_rules_from_rows",
    "kpi_definitions_from_rows",
    "validation_rules_from_rows",
    "value_environment_from_rows",
]
