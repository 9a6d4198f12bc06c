"""Rating-based trigger conditions for insight rules.

Single condition grammar (case-insensitive):

    poor        exactly poor
    poor-       poor or worse (toward critical)
    good+       good or better (toward excellent)
    any         any rating at all

Composite triggers join `<kpi_id>:<condition>` clauses with ` AND `.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, Optional

from .models import InsightKind, InsightRule, Rating

_AND = re.compile(r"\s+AND\s+")


class TriggerSyntaxError(ValueError):
    """Raised for trigger text that does not follow the condition grammar."""


class ConditionKind(str, Enum):
    EXACT = "exact"
    OR_WORSE = "or_worse"
    OR_BETTER = "or_better"
    ANY = "any"


@dataclass(frozen=True)
class Condition:
    kind: ConditionKind
    rating: Optional[Rating] = None

    def matches(self, rating: Optional[Rating]) -> bool:
        if rating is None:
            return False
        if self.kind == ConditionKind.ANY:
            return True
        if self.kind == ConditionKind.EXACT:
            return rating == self.rating
        if self.kind == ConditionKind.OR_WORSE:
            return rating.rank <= self.rating.rank
        return rating.rank >= self.rating.rank


@dataclass(frozen=True)
class Clause:
    kpi_id: str
    condition: Condition


def parse_condition(text: str) -> Condition:
    raw = str(text or "").strip().lower()
    if not raw:
        raise TriggerSyntaxError("Empty trigger condition")
    if raw == "any":
        return Condition(ConditionKind.ANY)
    kind = ConditionKind.EXACT
    if raw.endswith("-"):
        kind, raw = ConditionKind.OR_WORSE, raw[:-1].strip()
    elif raw.endswith("+"):
        kind, raw = ConditionKind.OR_BETTER, raw[:-1].strip()
    try:
        rating = Rating.parse(raw)
    except ValueError as exc:
        raise TriggerSyntaxError(f"Unknown rating in condition {text!r}") from exc
    return Condition(kind, rating)


def matches(rating: Optional[str], condition: str) -> bool:
    """True when `rating` satisfies `condition`; absent ratings never match."""
    if rating is None:
        return False
    value = rating if isinstance(rating, Rating) else Rating.parse(rating)
    return parse_condition(condition).matches(value)


def parse_composite(trigger: str) -> List[Clause]:
    text = str(trigger or "").strip()
    if not text:
        raise TriggerSyntaxError("Empty composite trigger")
    clauses: List[Clause] = []
    for part in _AND.split(text):
        kpi_id, sep, condition = part.partition(":")
        if not sep or not kpi_id.strip():
            raise TriggerSyntaxError(f"Composite clause {part!r} is not '<kpi>:<condition>'")
        clauses.append(Clause(kpi_id.strip(), parse_condition(condition)))
    return clauses


def rule_clauses(rule: InsightRule) -> List[Clause]:
    """Clauses a rule's trigger expands to. Raises TriggerSyntaxError."""
    if rule.kind == InsightKind.COMPOSITE or ":" in rule.trigger:
        return parse_composite(rule.trigger)
    if not rule.kpi_ids:
        raise TriggerSyntaxError("Single-KPI rule has no kpi_ids")
    return [Clause(rule.kpi_ids[0], parse_condition(rule.trigger))]


def trigger_fires(clauses: List[Clause], ratings: Mapping[str, Rating]) -> bool:
    """All clauses must hold; a KPI without a rating fails the trigger."""
    for clause in clauses:
        if not clause.condition.matches(ratings.get(clause.kpi_id.lower())):
            return False
    return True
