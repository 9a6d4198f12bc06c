from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .models import MAX_RECOMMENDATIONS, InsightStatus, ReportingPeriod


def _default_period_divisors() -> Dict[ReportingPeriod, float]:
    return {
        ReportingPeriod.MONTHLY: 12.0,
        ReportingPeriod.QUARTERLY: 4.0,
        ReportingPeriod.ANNUAL: 1.0,
    }


def _default_status_order() -> Dict[InsightStatus, int]:
    return {InsightStatus.CONCERN: 0, InsightStatus.WARNING: 1, InsightStatus.GOOD: 2}


class EngineConfig(BaseModel):
    """Engine tunables shared by every client run.

    Loaded once per configuration snapshot and passed explicitly through
    `AnalysisContext`; nothing reads it from module state.
    """

    model_config = ConfigDict(frozen=True)

    # Divisor applied to annual benchmark thresholds for sub-annual subjects.
    period_divisors: Dict[ReportingPeriod, float] = Field(default_factory=_default_period_divisors)
    max_expression_depth: int = 32
    max_recommendations: int = MAX_RECOMMENDATIONS
    # Used when a validation row leaves tolerance blank.
    default_tolerance: float = 0.0
    # Insight sort key within a section; lower sorts first.
    status_order: Dict[InsightStatus, int] = Field(default_factory=_default_status_order)

    currency_symbol: str = "$"
    percent_decimals: int = 1
    value_decimals: int = 2

    def divisor_for(self, period: ReportingPeriod) -> float:
        return self.period_divisors.get(ReportingPeriod(period), 1.0)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "EngineConfig":
        return cls.model_validate(dict(raw or {}))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "EngineConfig":
        path = Path(path)
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(text)
        else:
            raw = json.loads(text)
        if raw is not None and not isinstance(raw, dict):
            raise ValueError(f"Engine config must be a mapping: {path}")
        return cls.from_mapping(raw)


class ClientProfile(BaseModel):
    """Subject of an analysis run; feeds benchmark scoping and templates."""

    model_config = ConfigDict(frozen=True)

    client_id: str = ""
    company_name: str = ""
    industry: str = ""
    # Benchmark region filter; "state" in client-facing templates.
    region: str = ""
    period: ReportingPeriod = ReportingPeriod.ANNUAL

    @property
    def state(self) -> str:
        return self.region
