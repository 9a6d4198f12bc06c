from __future__ import annotations

from typing import List

from ..check import EXPR, FormulaCheck, relative_variance, skipped
from ..context import AnalysisContext
from ..models import CheckOutcome, ValidationRule
from ..registry import register_check


@register_check
class ReconcileCheck(FormulaCheck):
    prefix = "RECONCILE"
    arg_names = ("expression", "target")
    arg_kinds = (EXPR, EXPR)
    description = "Computed expression reconciles to a reported KPI within a relative tolerance."

    def check(self, args: List[str], rule: ValidationRule, ctx: AnalysisContext) -> CheckOutcome:
        computed = ctx.evaluate(args[0])
        reported = ctx.evaluate(args[1])
        if computed is None or reported is None:
            return skipped(actual=computed, expected=reported)

        variance = relative_variance(computed, reported)
        return CheckOutcome(
            passed=variance <= rule.tolerance,
            actual=computed,
            expected=reported,
            variance=variance,
        )
