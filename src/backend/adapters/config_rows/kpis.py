from __future__ import annotations

from typing import Any, Iterable, Mapping

from common.diagnostic_engine.models import KpiDefinition, KpiFormat

from .rows import RowLoad, iter_rows

_FORMAT_ALIASES = {
    "percent": KpiFormat.PERCENTAGE,
    "pct": KpiFormat.PERCENTAGE,
    "%": KpiFormat.PERCENTAGE,
    "money": KpiFormat.CURRENCY,
    "dollars": KpiFormat.CURRENCY,
    "$": KpiFormat.CURRENCY,
    "multiple": KpiFormat.RATIO,
    "x": KpiFormat.RATIO,
}


def kpi_definitions_from_rows(rows: Iterable[Mapping[str, Any]]) -> RowLoad[KpiDefinition]:
    """
    Build KPI definitions from rows shaped like:
      {"kpi_id": "booking_rate", "name": "Booking Rate", "format": "percentage", "decimals": "1"}
    """
    load: RowLoad[KpiDefinition] = RowLoad()
    for row in iter_rows(rows):
        kpi_id = row.text("kpi_id", "id")
        if not kpi_id:
            load.warn("kpi", f"row {row.position}", "Row has no kpi_id; dropped.")
            continue

        raw_format = row.text("format", "type", default="number").lower()
        fmt = _FORMAT_ALIASES.get(raw_format)
        if fmt is None:
            try:
                fmt = KpiFormat(raw_format)
            except ValueError:
                load.warn("kpi", kpi_id, f"Unknown format {raw_format!r}; using number.")
                fmt = KpiFormat.NUMBER

        decimals = row.number("decimals")
        load.items.append(
            KpiDefinition(
                id=kpi_id,
                name=row.text("name", "kpi_name"),
                format=fmt,
                decimals=None if decimals is None else int(decimals),
            )
        )
    return load
