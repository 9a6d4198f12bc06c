from __future__ import annotations

from typing import List

from ..check import EXPR, FormulaCheck, relative_variance, skipped
from ..context import AnalysisContext
from ..models import CheckOutcome, ValidationRule
from ..registry import register_check


@register_check
class EqualsCheck(FormulaCheck):
    prefix = "EQUALS"
    arg_names = ("left", "right")
    arg_kinds = (EXPR, EXPR)
    description = "Two values agree within the rule's relative tolerance."

    def check(self, args: List[str], rule: ValidationRule, ctx: AnalysisContext) -> CheckOutcome:
        left = ctx.evaluate(args[0])
        right = ctx.evaluate(args[1])
        if left is None or right is None:
            return skipped(actual=left, expected=right)

        variance = relative_variance(left, right)
        return CheckOutcome(passed=variance <= rule.tolerance, actual=left, expected=right, variance=variance)
