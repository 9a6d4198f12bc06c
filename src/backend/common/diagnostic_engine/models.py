from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_RECOMMENDATIONS = 5


class Rating(str, Enum):
    CRITICAL = "critical"
    POOR = "poor"
    AVERAGE = "average"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def rank(self) -> int:
        return RATING_ORDER.index(self)

    @classmethod
    def parse(cls, value: str) -> "Rating":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown rating '{value}'") from None


# Worst first.
RATING_ORDER: tuple[Rating, ...] = (
    Rating.CRITICAL,
    Rating.POOR,
    Rating.AVERAGE,
    Rating.GOOD,
    Rating.EXCELLENT,
)


class Direction(str, Enum):
    HIGHER = "higher"
    LOWER = "lower"


class ThresholdPeriod(str, Enum):
    ANNUAL = "annual"
    AGNOSTIC = "agnostic"


class ReportingPeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class InsightKind(str, Enum):
    SINGLE = "single"
    COMPOSITE = "composite"


class InsightStatus(str, Enum):
    CONCERN = "concern"
    WARNING = "warning"
    GOOD = "good"


class KpiFormat(str, Enum):
    PERCENTAGE = "percentage"
    CURRENCY = "currency"
    NUMBER = "number"
    RATIO = "ratio"
    DAYS = "days"


class KpiDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    format: KpiFormat = KpiFormat.NUMBER
    decimals: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id


class BenchmarkThreshold(BaseModel):
    """One benchmark row. Threshold ordering is assumed, never enforced."""

    model_config = ConfigDict(frozen=True)

    kpi_id: str
    industry_filter: str = "all"
    region_filter: str = "all"
    poor: Optional[float] = None
    average: Optional[float] = None
    good: Optional[float] = None
    excellent: Optional[float] = None
    direction: Direction = Direction.HIGHER
    period: ThresholdPeriod = ThresholdPeriod.AGNOSTIC

    def levels(self) -> tuple[Optional[float], Optional[float], Optional[float], Optional[float]]:
        return (self.poor, self.average, self.good, self.excellent)


class ValidationRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    type: str = ""
    formula: str
    tolerance: float = 0.0
    severity: Severity = Severity.WARNING
    message: str = ""
    affected_kpis: List[str] = Field(default_factory=list)
    active: bool = True


class InsightRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: InsightKind = InsightKind.SINGLE
    kpi_ids: List[str] = Field(default_factory=list)
    trigger: str
    title: str = ""
    status: InsightStatus = InsightStatus.WARNING
    summary_template: str = ""
    detail_template: str = ""
    recommendations: List[str] = Field(default_factory=list)
    section_id: str = ""
    priority: int = 0

    @field_validator("recommendations", mode="after")
    @classmethod
    def _cap_recommendations(cls, value: List[str]) -> List[str]:
        return [r for r in value if r.strip()][:MAX_RECOMMENDATIONS]


class CheckOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    skipped: bool = False
    actual: Optional[float] = None
    expected: Optional[float] = None
    variance: Optional[float] = None
    # Set when the formula itself is malformed (fail-open).
    config_error: Optional[str] = None


class ValidationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: Severity
    message: str
    expected: Optional[float] = None
    actual: Optional[float] = None
    variance: Optional[float] = None
    affected_kpis: List[str] = Field(default_factory=list)


class ConfigWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    ref: str
    message: str


class BenchmarkResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kpi_id: str
    value: float
    rating: Rating
    direction: Direction
    poor: float
    average: float
    good: float
    excellent: float
    industry_filter: str = "all"
    region_filter: str = "all"


class InsightResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    status: InsightStatus
    summary: str = ""
    detail: str = ""
    recommendations: List[str] = Field(default_factory=list)
    section_id: str = ""
    priority: int = 0


class AnalysisReport(BaseModel):
    run_id: str
    generated_at: datetime
    client_id: str = ""

    issues: List[ValidationIssue] = Field(default_factory=list)
    ratings: Dict[str, Rating] = Field(default_factory=dict)
    benchmarks: List[BenchmarkResult] = Field(default_factory=list)
    insights: List[InsightResult] = Field(default_factory=list)
    sections: Dict[str, List[InsightResult]] = Field(default_factory=dict)
    config_warnings: List[ConfigWarning] = Field(default_factory=list)
    totals: Dict[str, int] = Field(default_factory=dict)


@dataclass(frozen=True)
class StatusOrdering:
    order: Dict[InsightStatus, int]

    @classmethod
    def default(cls) -> "StatusOrdering":
        # config imports this module, so resolve EngineConfig lazily.
        from .config import EngineConfig

        return cls(order=dict(EngineConfig().status_order))

    def rank(self, status: InsightStatus) -> int:
        return self.order.get(status, len(self.order))
