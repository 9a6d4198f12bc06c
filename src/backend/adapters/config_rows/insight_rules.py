from __future__ import annotations

from typing import Any, Iterable, Mapping

from common.diagnostic_engine.models import MAX_RECOMMENDATIONS, InsightKind, InsightRule, InsightStatus

from .rows import RowLoad, iter_rows


def insight_rules_from_rows(rows: Iterable[Mapping[str, Any]]) -> RowLoad[InsightRule]:
    """
    Build insight rules from rows shaped like:
      {
        "id": "INS-BOOKING-LOW",
        "kind": "single",
        "kpi_ids": "booking_rate",
        "trigger": "poor-",
        "title": "Booking rate is low",
        "status": "concern",
        "summary_template": "Your booking rate of {value_formatted} ...",
        "detail_template": "...",
        "recommendations": "Call back within 5 minutes|Script the first call",
        "section_id": "marketing",
        "priority": "1"
      }

    Recommendations come from a `|`-separated `recommendations` column or from
    `recommendation_1..N` columns; anything past the fifth is dropped.
    """
    load: RowLoad[InsightRule] = RowLoad()
    for row in iter_rows(rows):
        rule_id = row.text("id", "rule_id")
        if not rule_id:
            load.warn("insight", f"row {row.position}", "Row has no rule id; dropped.")
            continue

        kpi_ids = row.items("kpi_ids", "kpi_id")
        raw_kind = row.text("kind", default="")
        if not raw_kind:
            raw_kind = InsightKind.COMPOSITE.value if len(kpi_ids) > 1 else InsightKind.SINGLE.value
        try:
            kind = InsightKind(raw_kind.lower())
        except ValueError:
            load.warn("insight", rule_id, f"Unknown kind {raw_kind!r}; row dropped.")
            continue

        raw_status = row.text("status", default=InsightStatus.WARNING.value).lower()
        try:
            status = InsightStatus(raw_status)
        except ValueError:
            load.warn("insight", rule_id, f"Unknown status {raw_status!r}; row dropped.")
            continue

        trigger = row.text("trigger")
        if not trigger:
            load.warn("insight", rule_id, "Row has no trigger; dropped.")
            continue

        recommendations = row.items("recommendations", sep="|") or row.numbered("recommendation")
        priority = row.number("priority")
        if priority is None and row.has("priority"):
            load.warn("insight", rule_id, "Non-numeric priority; using 0.")

        load.items.append(
            InsightRule(
                id=rule_id,
                kind=kind,
                kpi_ids=kpi_ids,
                trigger=trigger,
                title=row.text("title"),
                status=status,
                summary_template=row.text("summary_template", "summary"),
                detail_template=row.text("detail_template", "detail"),
                recommendations=recommendations[:MAX_RECOMMENDATIONS],
                section_id=row.text("section_id", "section"),
                priority=int(priority or 0),
            )
        )
    return load
