from __future__ import annotations

from typing import Any, Iterable, Mapping

from common.diagnostic_engine.models import Severity, ValidationRule

from .rows import RowLoad, iter_rows

_SEVERITY_ALIASES = {
    "low": Severity.INFO,
    "medium": Severity.WARNING,
    "warn": Severity.WARNING,
    "high": Severity.ERROR,
    "block": Severity.ERROR,
}


def validation_rules_from_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    default_tolerance: float = 0.0,
) -> RowLoad[ValidationRule]:
    """
    Build validation rules from rows shaped like:
      {
        "id": "VR-001",
        "name": "Revenue reconciles",
        "type": "reconcile",
        "formula": "RECONCILE:jobs*avg_ticket:revenue",
        "tolerance": "0.05",
        "severity": "warning",
        "message": "Revenue is off by {variance_pct}",
        "affected_kpis": "revenue, jobs, avg_ticket",
        "active": "TRUE"
      }

    The formula is kept verbatim; malformed formulas are reported when the
    rule executes, not here.
    """
    load: RowLoad[ValidationRule] = RowLoad()
    for row in iter_rows(rows):
        rule_id = row.text("id", "rule_id")
        if not rule_id:
            load.warn("validation", f"row {row.position}", "Row has no rule id; dropped.")
            continue

        raw_severity = row.text("severity", default=Severity.WARNING.value).lower()
        severity = _SEVERITY_ALIASES.get(raw_severity)
        if severity is None:
            try:
                severity = Severity(raw_severity)
            except ValueError:
                load.warn("validation", rule_id, f"Unknown severity {raw_severity!r}; using warning.")
                severity = Severity.WARNING

        tolerance = row.number("tolerance")
        if tolerance is None:
            if row.has("tolerance"):
                load.warn("validation", rule_id, "Non-numeric tolerance; using the default.")
            tolerance = default_tolerance

        load.items.append(
            ValidationRule(
                id=rule_id,
                name=row.text("name"),
                type=row.text("type"),
                formula=row.text("formula"),
                tolerance=tolerance,
                severity=severity,
                message=row.text("message"),
                affected_kpis=row.items("affected_kpis"),
                active=row.flag("active", default=True),
            )
        )
    return load
