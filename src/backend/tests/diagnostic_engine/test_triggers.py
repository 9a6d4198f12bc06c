import pytest

from common.diagnostic_engine.models import InsightKind, InsightRule, Rating
from common.diagnostic_engine.triggers import (
    ConditionKind,
    TriggerSyntaxError,
    matches,
    parse_composite,
    parse_condition,
    rule_clauses,
    trigger_fires,
)


@pytest.mark.parametrize(
    "rating,condition,expected",
    [
        ("poor", "poor-", True),
        ("critical", "poor-", True),
        ("average", "poor-", False),
        ("good", "good+", True),
        ("excellent", "good+", True),
        ("average", "good+", False),
        ("poor", "poor", True),
        ("critical", "poor", False),
        ("critical", "any", True),
        ("excellent", " Excellent ", True),
        ("critical", "critical+", True),
        ("excellent", "excellent-", True),
    ],
)
def test_single_condition_grammar(rating, condition, expected):
    assert matches(rating, condition) is expected


def test_absent_rating_never_matches():
    assert matches(None, "any") is False
    assert matches(None, "critical-") is False


@pytest.mark.parametrize("text", ["", "superb", "good++", "poor*", "-"])
def test_malformed_conditions_raise(text):
    with pytest.raises(TriggerSyntaxError):
        parse_condition(text)


def test_parse_condition_kinds():
    assert parse_condition("any").kind == ConditionKind.ANY
    assert parse_condition("GOOD+").kind == ConditionKind.OR_BETTER
    assert parse_condition("poor-").rating == Rating.POOR


def test_composite_requires_every_clause():
    clauses = parse_composite("a:good+ AND b:poor-")
    assert trigger_fires(clauses, {"a": Rating.EXCELLENT, "b": Rating.CRITICAL})
    assert not trigger_fires(clauses, {"a": Rating.AVERAGE, "b": Rating.CRITICAL})
    assert not trigger_fires(clauses, {"a": Rating.GOOD, "b": Rating.AVERAGE})


def test_composite_fails_closed_when_a_rating_is_absent():
    clauses = parse_composite("a:good+ AND b:poor-")
    assert not trigger_fires(clauses, {"a": Rating.EXCELLENT})
    assert not trigger_fires(clauses, {"b": Rating.POOR})


def test_composite_kpi_lookup_is_case_insensitive():
    clauses = parse_composite("Booking_Rate:any")
    assert trigger_fires(clauses, {"booking_rate": Rating.GOOD})


@pytest.mark.parametrize("text", ["a:good+ OR b:poor-", "a:good+ AND ", "good+", "a:good+ AND :poor"])
def test_malformed_composites_raise(text):
    with pytest.raises(TriggerSyntaxError):
        parse_composite(text)


def test_rule_clauses_for_single_and_composite_rules():
    single = InsightRule(id="s", trigger="poor-", kpi_ids=["close_rate"])
    assert [c.kpi_id for c in rule_clauses(single)] == ["close_rate"]

    composite = InsightRule(id="c", kind=InsightKind.COMPOSITE, trigger="a:any AND b:good")
    assert [c.kpi_id for c in rule_clauses(composite)] == ["a", "b"]

    with pytest.raises(TriggerSyntaxError):
        rule_clauses(InsightRule(id="x", trigger="poor-"))
