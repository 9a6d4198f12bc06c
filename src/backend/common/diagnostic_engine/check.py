from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from .context import AnalysisContext
from .models import CheckOutcome, ValidationRule

# Argument kinds understood by the executor's pre-validation.
EXPR = "expr"
NUMBER = "number"


class FormulaCheck(ABC):
    """One validation formula family, dispatched on its `PREFIX:` token."""

    prefix: str
    aliases: Tuple[str, ...] = ()
    arg_names: Tuple[str, ...]
    arg_kinds: Tuple[str, ...]
    description: str = ""

    def __init__(self):
        if not getattr(self, "prefix", None):
            raise ValueError("FormulaCheck must define prefix")
        if len(self.arg_names) != len(self.arg_kinds):
            raise ValueError(f"{self.prefix}: arg_names and arg_kinds differ in length")

    @property
    def arity(self) -> int:
        return len(self.arg_names)

    @abstractmethod
    def check(self, args: List[str], rule: ValidationRule, ctx: AnalysisContext) -> CheckOutcome:  # pragma: no cover
        raise NotImplementedError


def relative_variance(actual: float, expected: float) -> float:
    """|actual - expected| scaled by the larger magnitude, floored at 1."""
    return abs(actual - expected) / max(abs(actual), abs(expected), 1.0)


def skipped(actual: Optional[float] = None, expected: Optional[float] = None) -> CheckOutcome:
    return CheckOutcome(passed=True, skipped=True, actual=actual, expected=expected)
