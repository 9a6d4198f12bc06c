from __future__ import annotations

from typing import Any, Iterable, Mapping

from common.diagnostic_engine.models import BenchmarkThreshold, Direction, ThresholdPeriod

from .rows import RowLoad, iter_rows

_LEVELS = ("poor", "average", "good", "excellent")

_DIRECTION_ALIASES = {
    "higher_is_better": Direction.HIGHER,
    "ascending": Direction.HIGHER,
    "asc": Direction.HIGHER,
    "lower_is_better": Direction.LOWER,
    "descending": Direction.LOWER,
    "desc": Direction.LOWER,
}


def benchmark_rows_from_rows(rows: Iterable[Mapping[str, Any]]) -> RowLoad[BenchmarkThreshold]:
    """
    Build benchmark threshold rows from rows shaped like:
      {
        "kpi_id": "booking_rate",
        "industry": "hvac", "region": "all",
        "poor": "30", "average": "40", "good": "50", "excellent": "60",
        "direction": "higher", "period": "agnostic"
      }

    Declaration order is preserved; it breaks ties between rows of equal
    specificity. Non-numeric thresholds are kept as None so the KPI goes
    unrated instead of the row disappearing.
    """
    load: RowLoad[BenchmarkThreshold] = RowLoad()
    for row in iter_rows(rows):
        kpi_id = row.text("kpi_id", "kpi")
        if not kpi_id:
            load.warn("benchmark", f"row {row.position}", "Row has no kpi_id; dropped.")
            continue

        raw_direction = row.text("direction", default=Direction.HIGHER.value).lower()
        direction = _DIRECTION_ALIASES.get(raw_direction)
        if direction is None:
            try:
                direction = Direction(raw_direction)
            except ValueError:
                load.warn("benchmark", kpi_id, f"Unknown direction {raw_direction!r}; row dropped.")
                continue

        raw_period = row.text("period", default=ThresholdPeriod.AGNOSTIC.value).lower()
        try:
            period = ThresholdPeriod(raw_period)
        except ValueError:
            load.warn("benchmark", kpi_id, f"Unknown period {raw_period!r}; row dropped.")
            continue

        levels = {}
        for level in _LEVELS:
            levels[level] = row.number(level)
            if levels[level] is None:
                load.warn("benchmark", kpi_id, f"Threshold {level!r} is missing or non-numeric.")

        load.items.append(
            BenchmarkThreshold(
                kpi_id=kpi_id,
                industry_filter=row.text("industry_filter", "industry", default="all"),
                region_filter=row.text("region_filter", "region", "state", default="all"),
                direction=direction,
                period=period,
                **levels,
            )
        )
    return load
