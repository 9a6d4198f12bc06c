from __future__ import annotations

from typing import List

from ..check import EXPR, NUMBER, FormulaCheck, skipped
from ..context import AnalysisContext
from ..environment import coerce_number
from ..models import CheckOutcome, ValidationRule
from ..registry import register_check


@register_check
class RangeCheck(FormulaCheck):
    prefix = "RANGE"
    arg_names = ("kpi", "min", "max")
    arg_kinds = (EXPR, NUMBER, NUMBER)
    description = "Value lies within [min, max], bounds inclusive; min may be negative."

    def check(self, args: List[str], rule: ValidationRule, ctx: AnalysisContext) -> CheckOutcome:
        value = ctx.evaluate(args[0])
        low = coerce_number(args[1])
        high = coerce_number(args[2])
        if value is None:
            return skipped()

        if value < low:
            return CheckOutcome(passed=False, actual=value, expected=low, variance=low - value)
        if value > high:
            return CheckOutcome(passed=False, actual=value, expected=high, variance=value - high)
        return CheckOutcome(passed=True, actual=value)
