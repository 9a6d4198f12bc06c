from __future__ import annotations

from typing import List

from ..check import EXPR, FormulaCheck
from ..context import AnalysisContext
from ..models import CheckOutcome, ValidationRule
from ..registry import register_check


@register_check
class RequiresCheck(FormulaCheck):
    prefix = "REQUIRES"
    arg_names = ("kpi", "required")
    arg_kinds = (EXPR, EXPR)
    description = "When the first KPI is reported, the second must be reported too."

    def check(self, args: List[str], rule: ValidationRule, ctx: AnalysisContext) -> CheckOutcome:
        present = ctx.evaluate(args[0])
        required = ctx.evaluate(args[1])
        # Never skipped: absence of the first KPI is a vacuous pass.
        return CheckOutcome(
            passed=present is None or required is not None,
            actual=present,
            expected=required,
        )
