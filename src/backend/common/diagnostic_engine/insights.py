"""Insight trigger evaluation, rendering and section ordering."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from .context import AnalysisContext
from .models import (
    BenchmarkResult,
    ConfigWarning,
    InsightKind,
    InsightResult,
    InsightRule,
    Rating,
    StatusOrdering,
)
from .templates import kpi_fields, render, universal_fields
from .triggers import Clause, TriggerSyntaxError, rule_clauses, trigger_fires

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsightRun:
    results: List[InsightResult] = field(default_factory=list)
    sections: Dict[str, List[InsightResult]] = field(default_factory=dict)
    warnings: List[ConfigWarning] = field(default_factory=list)


def _template_context(
    rule: InsightRule,
    clauses: List[Clause],
    ctx: AnalysisContext,
    benchmarks: Mapping[str, BenchmarkResult],
) -> Dict[str, object]:
    fields: Dict[str, object] = universal_fields(ctx.profile)
    config = ctx.engine_config
    if rule.kind == InsightKind.SINGLE and len(clauses) == 1:
        result = benchmarks.get(clauses[0].kpi_id.lower())
        if result is not None:
            fields.update(kpi_fields(result, ctx.kpi(clauses[0].kpi_id), config))
        return fields

    kpi_ids: List[str] = []
    for kpi_id in [*rule.kpi_ids, *(c.kpi_id for c in clauses)]:
        if kpi_id.lower() not in (k.lower() for k in kpi_ids):
            kpi_ids.append(kpi_id)
    for kpi_id in kpi_ids:
        result = benchmarks.get(kpi_id.lower())
        if result is not None:
            fields.update(kpi_fields(result, ctx.kpi(kpi_id), config, prefix=kpi_id))
    return fields


def render_insight(
    rule: InsightRule,
    clauses: List[Clause],
    ctx: AnalysisContext,
    benchmarks: Mapping[str, BenchmarkResult],
) -> InsightResult:
    fields = _template_context(rule, clauses, ctx, benchmarks)
    recommendations = [render(r, fields) for r in rule.recommendations]
    return InsightResult(
        id=rule.id,
        title=render(rule.title, fields),
        status=rule.status,
        summary=render(rule.summary_template, fields),
        detail=render(rule.detail_template, fields),
        recommendations=recommendations[: ctx.engine_config.max_recommendations],
        section_id=rule.section_id,
        priority=rule.priority,
    )


def order_results(
    results: Iterable[InsightResult],
    ordering: Optional[StatusOrdering] = None,
) -> Dict[str, List[InsightResult]]:
    """Group by section (first-seen order); sort by status then priority, stably."""
    ordering = ordering or StatusOrdering.default()
    sections: Dict[str, List[InsightResult]] = {}
    for result in results:
        sections.setdefault(result.section_id, []).append(result)
    return {
        section_id: sorted(items, key=lambda r: (ordering.rank(r.status), r.priority))
        for section_id, items in sections.items()
    }


def run_insights(
    rules: Iterable[InsightRule],
    ratings: Mapping[str, Rating],
    ctx: AnalysisContext,
    *,
    benchmarks: Iterable[BenchmarkResult] = (),
    ordering: Optional[StatusOrdering] = None,
) -> InsightRun:
    by_kpi = {kpi_id.lower(): rating for kpi_id, rating in ratings.items()}
    results_by_kpi = {result.kpi_id.lower(): result for result in benchmarks}
    fired: List[InsightResult] = []
    warnings: List[ConfigWarning] = []

    for rule in rules:
        try:
            clauses = rule_clauses(rule)
        except TriggerSyntaxError as exc:
            logger.warning("Insight rule %s: %s; rule will not fire.", rule.id, exc)
            warnings.append(ConfigWarning(source="insight", ref=rule.id, message=str(exc)))
            continue
        if not trigger_fires(clauses, by_kpi):
            continue
        fired.append(render_insight(rule, clauses, ctx, results_by_kpi))

    sections = order_results(fired, ordering or StatusOrdering(order=dict(ctx.engine_config.status_order)))
    ordered = [result for items in sections.values() for result in items]
    logger.info("Insights: %d fired across %d sections", len(ordered), len(sections))
    return InsightRun(results=ordered, sections=sections, warnings=warnings)
