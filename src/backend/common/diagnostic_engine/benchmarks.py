"""Benchmark threshold selection and ordinal rating."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from .config import ClientProfile, EngineConfig
from .context import AnalysisContext
from .environment import coerce_number
from .models import (
    BenchmarkResult,
    BenchmarkThreshold,
    ConfigWarning,
    Direction,
    Rating,
    ThresholdPeriod,
)

logger = logging.getLogger(__name__)

WILDCARD_FILTERS = frozenset({"", "all", "*", "any"})

Levels = tuple[float, float, float, float]


def _parse_direction(direction: Union[Direction, str]) -> Direction:
    if isinstance(direction, Direction):
        return direction
    try:
        return Direction(str(direction).strip().lower())
    except ValueError:
        raise ValueError(f"direction must be 'higher' or 'lower', got {direction!r}") from None


def _levels(thresholds: Any) -> Optional[Levels]:
    if isinstance(thresholds, BenchmarkThreshold):
        raw: Sequence[Any] = thresholds.levels()
    elif isinstance(thresholds, (str, bytes)):
        return None
    elif isinstance(thresholds, dict):
        raw = [thresholds.get(k) for k in ("poor", "average", "good", "excellent")]
    else:
        raw = list(thresholds)
    if len(raw) != 4:
        return None
    numbers = [coerce_number(v) for v in raw]
    if any(n is None for n in numbers):
        return None
    return numbers[0], numbers[1], numbers[2], numbers[3]  # type: ignore[return-value]


def rate(
    value: Optional[float],
    thresholds: Union[BenchmarkThreshold, Sequence[Any], dict],
    direction: Union[Direction, str],
) -> Optional[Rating]:
    """Map a value onto critical/poor/average/good/excellent.

    `thresholds` is (poor, average, good, excellent). Returns None when the value
    is absent or NaN, or when any threshold is missing or non-numeric. Thresholds
    are walked best-first, so out-of-order rows still produce a rating.
    """
    direction = _parse_direction(direction)
    if value is None or isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    levels = _levels(thresholds)
    if levels is None:
        return None
    poor, average, good, excellent = levels
    ladder = (
        (excellent, Rating.EXCELLENT),
        (good, Rating.GOOD),
        (average, Rating.AVERAGE),
        (poor, Rating.POOR),
    )
    for bound, rating in ladder:
        if direction == Direction.HIGHER and value >= bound:
            return rating
        if direction == Direction.LOWER and value <= bound:
            return rating
    return Rating.CRITICAL


def _is_wildcard(value: str) -> bool:
    return value.strip().lower() in WILDCARD_FILTERS


def _same(row_filter: str, subject: str) -> bool:
    return bool(subject.strip()) and row_filter.strip().lower() == subject.strip().lower()


ScopePredicate = Callable[[BenchmarkThreshold, ClientProfile], bool]

# Most specific first; first predicate that holds gives the row its rank.
SCOPE_RANKS: tuple[tuple[str, int, ScopePredicate], ...] = (
    (
        "exact",
        4,
        lambda row, subj: _same(row.industry_filter, subj.industry) and _same(row.region_filter, subj.region),
    ),
    (
        "industry",
        3,
        lambda row, subj: _same(row.industry_filter, subj.industry) and _is_wildcard(row.region_filter),
    ),
    (
        "region",
        2,
        lambda row, subj: _is_wildcard(row.industry_filter) and _same(row.region_filter, subj.region),
    ),
    (
        "universal",
        1,
        lambda row, subj: _is_wildcard(row.industry_filter) and _is_wildcard(row.region_filter),
    ),
)


def scope_rank(row: BenchmarkThreshold, subject: ClientProfile) -> tuple[str, int]:
    """Return (scope name, rank); rank 0 means the row does not apply."""
    for name, rank, predicate in SCOPE_RANKS:
        if predicate(row, subject):
            return name, rank
    return "", 0


@dataclass(frozen=True)
class SelectedBenchmark:
    row: BenchmarkThreshold
    scope: str
    divisor: float

    @property
    def thresholds(self) -> tuple[Optional[float], ...]:
        levels = self.row.levels()
        if self.row.period != ThresholdPeriod.ANNUAL or self.divisor == 1:
            return levels
        return tuple(None if v is None else v / self.divisor for v in levels)


@dataclass(frozen=True)
class BenchmarkIndex:
    """Benchmark rows resolved once per run for one subject.

    Each KPI's candidate rows are ranked with SCOPE_RANKS; the highest rank wins
    and equal ranks keep the first-declared row.
    """

    subject: ClientProfile
    selected: Dict[str, SelectedBenchmark] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        rows: Iterable[BenchmarkThreshold],
        subject: ClientProfile,
        config: Optional[EngineConfig] = None,
    ) -> "BenchmarkIndex":
        config = config or EngineConfig()
        divisor = config.divisor_for(subject.period)
        best: Dict[str, tuple[int, BenchmarkThreshold, str]] = {}
        for row in rows:
            scope, rank = scope_rank(row, subject)
            if rank == 0:
                continue
            key = row.kpi_id.strip().lower()
            current = best.get(key)
            # Strictly greater: ties keep the earlier row.
            if current is None or rank > current[0]:
                best[key] = (rank, row, scope)
        selected = {
            key: SelectedBenchmark(row=row, scope=scope, divisor=divisor)
            for key, (_, row, scope) in best.items()
        }
        logger.debug("Benchmark index for %s/%s: %d KPIs", subject.industry, subject.region, len(selected))
        return cls(subject=subject, selected=selected)

    def select(self, kpi_id: str) -> Optional[SelectedBenchmark]:
        return self.selected.get(kpi_id.strip().lower())

    def __contains__(self, kpi_id: object) -> bool:
        return isinstance(kpi_id, str) and self.select(kpi_id) is not None


@dataclass(frozen=True)
class RatingRun:
    results: List[BenchmarkResult]
    ratings: Dict[str, Rating]
    warnings: List[ConfigWarning]

    def result_for(self, kpi_id: str) -> Optional[BenchmarkResult]:
        key = kpi_id.strip().lower()
        for result in self.results:
            if result.kpi_id.lower() == key:
                return result
        return None


def rate_all(ctx: AnalysisContext, index: BenchmarkIndex) -> RatingRun:
    """Rate every KPI that has both a value and a selected benchmark row."""
    results: List[BenchmarkResult] = []
    ratings: Dict[str, Rating] = {}
    warnings: List[ConfigWarning] = []
    for kpi_id, value in ctx.env.items():
        if value is None:
            continue
        selected = index.select(kpi_id)
        if selected is None:
            continue
        thresholds = selected.thresholds
        rating = rate(value, thresholds, selected.row.direction)
        if rating is None:
            message = "Benchmark row has missing or non-numeric thresholds; KPI not rated."
            logger.warning("Benchmark for %s (%s scope): %s", kpi_id, selected.scope, message)
            warnings.append(ConfigWarning(source="benchmark", ref=kpi_id, message=message))
            continue
        poor, average, good, excellent = thresholds
        results.append(
            BenchmarkResult(
                kpi_id=kpi_id,
                value=value,
                rating=rating,
                direction=selected.row.direction,
                poor=poor,
                average=average,
                good=good,
                excellent=excellent,
                industry_filter=selected.row.industry_filter,
                region_filter=selected.row.region_filter,
            )
        )
        ratings[kpi_id] = rating
    return RatingRun(results=results, ratings=ratings, warnings=warnings)
