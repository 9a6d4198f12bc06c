from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from .benchmarks import BenchmarkIndex, rate_all
from .context import AnalysisContext
from .insights import run_insights
from .models import (
    AnalysisReport,
    BenchmarkThreshold,
    InsightRule,
    StatusOrdering,
    ValidationRule,
)
from .validation import run_validation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable rule/threshold/insight definitions shared across client runs."""

    validation_rules: tuple[ValidationRule, ...] = ()
    benchmarks: tuple[BenchmarkThreshold, ...] = ()
    insight_rules: tuple[InsightRule, ...] = ()

    @classmethod
    def of(
        cls,
        *,
        validation_rules: Sequence[ValidationRule] = (),
        benchmarks: Sequence[BenchmarkThreshold] = (),
        insight_rules: Sequence[InsightRule] = (),
    ) -> "ConfigSnapshot":
        return cls(tuple(validation_rules), tuple(benchmarks), tuple(insight_rules))


@dataclass
class AnalysisRunner:
    # None sorts by the context's EngineConfig.status_order.
    ordering: Optional[StatusOrdering] = None

    def run(
        self,
        ctx: AnalysisContext,
        config: ConfigSnapshot,
        *,
        rule_ids: Optional[set[str]] = None,
    ) -> AnalysisReport:
        validation = run_validation(config.validation_rules, ctx, rule_ids=rule_ids)

        index = BenchmarkIndex.build(config.benchmarks, ctx.profile, ctx.engine_config)
        rating_run = rate_all(ctx, index)

        insight_run = run_insights(
            config.insight_rules,
            rating_run.ratings,
            ctx,
            benchmarks=rating_run.results,
            ordering=self.ordering,
        )

        totals = dict(validation.counts)
        totals["issues"] = len(validation.issues)
        totals["rated"] = len(rating_run.ratings)
        totals["insights"] = len(insight_run.results)

        report = AnalysisReport(
            run_id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc),
            client_id=ctx.profile.client_id,
            issues=validation.issues,
            ratings=rating_run.ratings,
            benchmarks=rating_run.results,
            insights=insight_run.results,
            sections=insight_run.sections,
            config_warnings=[*validation.warnings, *rating_run.warnings, *insight_run.warnings],
            totals=totals,
        )
        logger.info(
            "Analysis %s for %s: %d issues, %d ratings, %d insights, %d config warnings",
            report.run_id,
            report.client_id or "<unnamed>",
            totals["issues"],
            totals["rated"],
            totals["insights"],
            len(report.config_warnings),
        )
        return report
