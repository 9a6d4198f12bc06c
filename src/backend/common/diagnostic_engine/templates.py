from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from .config import ClientProfile, EngineConfig
from .models import BenchmarkResult, KpiDefinition, KpiFormat

PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def render(template: str, context: Mapping[str, Any]) -> str:
    """Replace `{name}` placeholders; unknown or None values become ''."""
    if not template:
        return ""

    def _sub(match: re.Match[str]) -> str:
        value = context.get(match.group(1))
        if value is None:
            return ""
        return str(value)

    return PLACEHOLDER.sub(_sub, template)


def _trim(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def round_value(value: float, decimals: int) -> str:
    return _trim(f"{value:.{decimals}f}")


def format_value(value: Optional[float], kpi: KpiDefinition, config: EngineConfig) -> str:
    if value is None:
        return ""
    fmt = kpi.format
    if fmt == KpiFormat.PERCENTAGE:
        decimals = config.percent_decimals if kpi.decimals is None else kpi.decimals
        return f"{_trim(f'{value:,.{decimals}f}')}%"
    if fmt == KpiFormat.CURRENCY:
        decimals = 0 if kpi.decimals is None else kpi.decimals
        sign = "-" if value < 0 else ""
        return f"{sign}{config.currency_symbol}{abs(value):,.{decimals}f}"
    if fmt == KpiFormat.RATIO:
        decimals = 2 if kpi.decimals is None else kpi.decimals
        return f"{_trim(f'{value:,.{decimals}f}')}x"
    if fmt == KpiFormat.DAYS:
        decimals = 0 if kpi.decimals is None else kpi.decimals
        return f"{_trim(f'{value:,.{decimals}f}')} days"
    decimals = config.value_decimals if kpi.decimals is None else kpi.decimals
    return _trim(f"{value:,.{decimals}f}")


def universal_fields(profile: ClientProfile) -> dict[str, Any]:
    return {
        "company_name": profile.company_name,
        "industry": profile.industry,
        "state": profile.state,
    }


def kpi_fields(
    result: BenchmarkResult,
    kpi: KpiDefinition,
    config: EngineConfig,
    *,
    prefix: str = "",
) -> dict[str, Any]:
    """Template fields for one rated KPI.

    With a prefix the `value_`/`kpi_` stems give way to the KPI id:
    `value_formatted` becomes `booking_rate_formatted`, `value` becomes
    `booking_rate_value`, `kpi_name` becomes `booking_rate_name` and
    `benchmark_good` becomes `booking_rate_benchmark_good`.
    """
    fields = {
        "value": result.value,
        "value_rounded": round_value(result.value, config.value_decimals),
        "value_formatted": format_value(result.value, kpi, config),
        "rating": result.rating.value,
        "kpi_name": kpi.display_name,
        "benchmark_poor": format_value(result.poor, kpi, config),
        "benchmark_average": format_value(result.average, kpi, config),
        "benchmark_good": format_value(result.good, kpi, config),
        "benchmark_excellent": format_value(result.excellent, kpi, config),
    }
    if not prefix:
        return fields
    prefixed = {}
    for key, value in fields.items():
        if key.startswith("value_"):
            key = key[len("value_"):]
        elif key.startswith("kpi_"):
            key = key[len("kpi_"):]
        prefixed[f"{prefix}_{key}"] = value
    return prefixed
