from .comparison import GreaterCheck, GreaterOrEqualCheck
from .equals import EqualsCheck
from .range_check import RangeCheck
from .ratio import RatioMaxCheck, RatioMinCheck
from .reconcile import ReconcileCheck
from .requires import RequiresCheck

__all__ = [
    "ReconcileCheck",
    "RangeCheck",
    "GreaterCheck",
    "GreaterOrEqualCheck",
    "EqualsCheck",
    "RequiresCheck",
    "RatioMinCheck",
    "RatioMaxCheck",
]
