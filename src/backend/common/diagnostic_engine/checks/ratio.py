from __future__ import annotations

from typing import List

from ..check import EXPR, NUMBER, FormulaCheck, skipped
from ..context import AnalysisContext
from ..environment import coerce_number
from ..models import CheckOutcome, ValidationRule
from ..registry import register_check


class _RatioBoundCheck(FormulaCheck):
    arg_names = ("expression", "threshold")
    arg_kinds = (EXPR, NUMBER)

    def within(self, ratio: float, threshold: float) -> bool:  # pragma: no cover
        raise NotImplementedError

    def check(self, args: List[str], rule: ValidationRule, ctx: AnalysisContext) -> CheckOutcome:
        ratio = ctx.evaluate(args[0])
        threshold = coerce_number(args[1])
        if ratio is None:
            return skipped(expected=threshold)
        return CheckOutcome(
            passed=self.within(ratio, threshold),
            actual=ratio,
            expected=threshold,
            variance=ratio - threshold,
        )


@register_check
class RatioMinCheck(_RatioBoundCheck):
    prefix = "RATIO_MIN"
    description = "Expression value is at least the threshold."

    def within(self, ratio: float, threshold: float) -> bool:
        return ratio >= threshold


@register_check
class RatioMaxCheck(_RatioBoundCheck):
    prefix = "RATIO_MAX"
    description = "Expression value is at most the threshold."

    def within(self, ratio: float, threshold: float) -> bool:
        return ratio <= threshold
