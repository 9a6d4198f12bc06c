"""Validation rule executor.

Formulas look like `PREFIX:arg:arg...`. The prefix picks a registered
FormulaCheck; arguments are pre-validated against the check's declared kinds.
Anything malformed or unknown passes vacuously as a skip and is reported as a
configuration warning, so one bad row never aborts a run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .check import EXPR, NUMBER
from .context import AnalysisContext, build_context
from .environment import ValueEnvironment, coerce_number
from .expressions import is_valid
from .models import CheckOutcome, ConfigWarning, ValidationIssue, ValidationRule
from .registry import CheckRegistry, registry
from .templates import render, round_value, universal_fields

# Register built-in checks with the global registry.
from . import checks as _builtin_checks  # noqa: F401

logger = logging.getLogger(__name__)


def split_formula(formula: str) -> Tuple[str, List[str]]:
    parts = [part.strip() for part in str(formula or "").split(":")]
    return parts[0].upper(), parts[1:]


def _malformed(reason: str) -> CheckOutcome:
    return CheckOutcome(passed=True, skipped=True, config_error=reason)


def _as_context(env: Union[AnalysisContext, ValueEnvironment, Mapping[str, Any]]) -> AnalysisContext:
    if isinstance(env, AnalysisContext):
        return env
    return build_context(env)


def execute(
    rule: ValidationRule,
    env: Union[AnalysisContext, ValueEnvironment, Mapping[str, Any]],
    *,
    checks: Optional[CheckRegistry] = None,
) -> CheckOutcome:
    """Run one rule's formula and return pass/fail/skip with the compared values."""
    ctx = _as_context(env)
    checks = checks or registry
    prefix, args = split_formula(rule.formula)

    check = checks.lookup(prefix) if prefix else None
    if check is None:
        reason = f"Unknown formula type {prefix!r}" if prefix else "Empty formula"
        logger.warning("Validation rule %s: %s; skipped.", rule.id, reason)
        return _malformed(reason)

    if len(args) != check.arity:
        reason = f"{check.prefix} expects {check.arity} arguments ({', '.join(check.arg_names)}), got {len(args)}"
        logger.warning("Validation rule %s: %s; skipped.", rule.id, reason)
        return _malformed(reason)

    max_depth = ctx.engine_config.max_expression_depth
    for name, kind, arg in zip(check.arg_names, check.arg_kinds, args):
        if kind == EXPR and not is_valid(arg, max_depth=max_depth):
            reason = f"{check.prefix} argument {name!r} is not a valid expression: {arg!r}"
        elif kind == NUMBER and coerce_number(arg) is None:
            reason = f"{check.prefix} argument {name!r} is not numeric: {arg!r}"
        else:
            continue
        logger.warning("Validation rule %s: %s; skipped.", rule.id, reason)
        return _malformed(reason)

    outcome = check.check(args, rule, ctx)
    if outcome.skipped:
        logger.debug("Validation rule %s skipped: missing data", rule.id)
    return outcome


def _message_fields(rule: ValidationRule, outcome: CheckOutcome, ctx: AnalysisContext) -> Dict[str, Any]:
    decimals = ctx.engine_config.value_decimals

    def _num(value: Optional[float], places: int = decimals) -> Optional[str]:
        return None if value is None else round_value(value, places)

    fields = universal_fields(ctx.profile)
    fields.update(
        {
            "rule_name": rule.name or rule.id,
            "actual": _num(outcome.actual),
            "expected": _num(outcome.expected),
            "variance": _num(outcome.variance, 4),
            "variance_pct": None if outcome.variance is None else f"{round_value(outcome.variance * 100, 1)}%",
            "tolerance": round_value(rule.tolerance, 4),
        }
    )
    return fields


def build_issue(rule: ValidationRule, outcome: CheckOutcome, ctx: AnalysisContext) -> ValidationIssue:
    message = render(rule.message, _message_fields(rule, outcome, ctx)).strip()
    return ValidationIssue(
        rule_id=rule.id,
        severity=rule.severity,
        message=message or rule.name or rule.id,
        expected=outcome.expected,
        actual=outcome.actual,
        variance=outcome.variance,
        affected_kpis=list(rule.affected_kpis),
    )


@dataclass(frozen=True)
class RuleOutcome:
    rule_id: str
    outcome: CheckOutcome


@dataclass(frozen=True)
class ValidationRun:
    issues: List[ValidationIssue] = field(default_factory=list)
    outcomes: List[RuleOutcome] = field(default_factory=list)
    warnings: List[ConfigWarning] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)


def run_validation(
    rules: Iterable[ValidationRule],
    env: Union[AnalysisContext, ValueEnvironment, Mapping[str, Any]],
    *,
    rule_ids: Optional[Set[str]] = None,
    checks: Optional[CheckRegistry] = None,
) -> ValidationRun:
    ctx = _as_context(env)
    issues: List[ValidationIssue] = []
    outcomes: List[RuleOutcome] = []
    warnings: List[ConfigWarning] = []
    counts = {"passed": 0, "failed": 0, "skipped": 0, "inactive": 0}

    for rule in rules:
        if rule_ids is not None and rule.id not in rule_ids:
            continue
        if not rule.active:
            counts["inactive"] += 1
            continue
        outcome = execute(rule, ctx, checks=checks)
        outcomes.append(RuleOutcome(rule_id=rule.id, outcome=outcome))
        if outcome.config_error:
            warnings.append(ConfigWarning(source="validation", ref=rule.id, message=outcome.config_error))
        if outcome.skipped:
            counts["skipped"] += 1
        elif outcome.passed:
            counts["passed"] += 1
        else:
            counts["failed"] += 1
            issues.append(build_issue(rule, outcome, ctx))

    logger.info(
        "Validation: %d passed, %d failed, %d skipped, %d inactive",
        counts["passed"],
        counts["failed"],
        counts["skipped"],
        counts["inactive"],
    )
    return ValidationRun(issues=issues, outcomes=outcomes, warnings=warnings, counts=counts)
