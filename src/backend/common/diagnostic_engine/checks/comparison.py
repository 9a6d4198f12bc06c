from __future__ import annotations

from typing import List

from ..check import EXPR, FormulaCheck, skipped
from ..context import AnalysisContext
from ..models import CheckOutcome, ValidationRule
from ..registry import register_check


class _ComparisonCheck(FormulaCheck):
    arg_names = ("kpi", "expression")
    arg_kinds = (EXPR, EXPR)

    def compare(self, left: float, right: float) -> bool:  # pragma: no cover
        raise NotImplementedError

    def check(self, args: List[str], rule: ValidationRule, ctx: AnalysisContext) -> CheckOutcome:
        left = ctx.evaluate(args[0])
        right = ctx.evaluate(args[1])
        if left is None or right is None:
            return skipped(actual=left, expected=right)
        return CheckOutcome(
            passed=self.compare(left, right),
            actual=left,
            expected=right,
            variance=left - right,
        )


@register_check
class GreaterCheck(_ComparisonCheck):
    prefix = "GREATER"
    aliases = ("GT",)
    description = "Left value is strictly greater than the right-hand expression."

    def compare(self, left: float, right: float) -> bool:
        return left > right


@register_check
class GreaterOrEqualCheck(_ComparisonCheck):
    prefix = "GTE"
    description = "Left value is greater than or equal to the right-hand expression."

    def compare(self, left: float, right: float) -> bool:
        return left >= right
