import logging

import pytest

from common.diagnostic_engine.check import EXPR, FormulaCheck
from common.diagnostic_engine.models import CheckOutcome, Severity
from common.diagnostic_engine.registry import CheckRegistry, registry
from common.diagnostic_engine.validation import execute, run_validation, split_formula


@pytest.mark.parametrize(
    "formula",
    [
        "",
        "NOPE:a:b",
        "RANGE:x:0",
        "RANGE:x:zero:100",
        "RECONCILE:a*:b",
        "GT:a",
        "RATIO_MIN:a/b:high",
        "no prefix at all",
    ],
)
def test_unknown_or_malformed_formula_is_a_vacuous_skip(make_rule, formula, caplog):
    with caplog.at_level(logging.WARNING):
        res = execute(make_rule(formula), {"a": 1, "b": 2, "x": 3})
    assert res.passed and res.skipped
    assert res.config_error
    assert "VR-TEST" in caplog.text


def test_split_formula_normalizes_prefix_and_whitespace():
    assert split_formula(" range : x : -5 : 10 ") == ("RANGE", ["x", "-5", "10"])


def test_run_validation_emits_one_issue_per_failed_rule(make_rule, make_ctx):
    rules = [
        make_rule("RANGE:x:0:10", rule_id="R1", severity=Severity.ERROR, message="x={actual} max={expected}"),
        make_rule("RANGE:x:0:100", rule_id="R2"),
        make_rule("RANGE:missing:0:1", rule_id="R3"),
        make_rule("BOGUS:x", rule_id="R4"),
        make_rule("RANGE:x:0:1", rule_id="R5", active=False),
        make_rule("REQUIRES:x:y", rule_id="R6", severity=Severity.INFO, affected_kpis=["x", "y"]),
    ]
    run = run_validation(rules, make_ctx({"x": 50}))

    assert [issue.rule_id for issue in run.issues] == ["R1", "R6"]
    first, second = run.issues
    assert first.severity == Severity.ERROR
    assert first.message == "x=50 max=10"
    assert (first.actual, first.expected, first.variance) == (50, 10, 40)
    assert second.severity == Severity.INFO
    assert second.message == "Test rule"
    assert second.affected_kpis == ["x", "y"]

    assert run.counts == {"passed": 1, "failed": 2, "skipped": 2, "inactive": 1}
    assert [w.ref for w in run.warnings] == ["R4"]
    assert {o.rule_id for o in run.outcomes} == {"R1", "R2", "R3", "R4", "R6"}


def test_run_validation_can_be_limited_to_rule_ids(make_rule):
    rules = [make_rule("RANGE:x:0:10", rule_id="R1"), make_rule("RANGE:x:0:1", rule_id="R2")]
    run = run_validation(rules, {"x": 50}, rule_ids={"R2"})
    assert [issue.rule_id for issue in run.issues] == ["R2"]


def test_issue_message_renders_variance_and_profile_fields(make_rule, make_ctx):
    rule = make_rule(
        "RECONCILE:a:b",
        tolerance=0.01,
        message="{company_name}: {rule_name} off by {variance_pct} {unknown}",
    )
    run = run_validation([rule], make_ctx({"a": 90, "b": 100}))
    assert run.issues[0].message == "Acme Heating & Air: Test rule off by 10%"


class _AlwaysFails(FormulaCheck):
    prefix = "ALWAYS_FAILS"
    aliases = ("AF",)
    arg_names = ("kpi",)
    arg_kinds = (EXPR,)

    def check(self, args, rule, ctx):
        return CheckOutcome(passed=False, actual=ctx.evaluate(args[0]))


def test_custom_registry_dispatches_registered_prefixes(make_rule):
    checks = CheckRegistry()
    checks.register(_AlwaysFails)
    res = execute(make_rule("af:x"), {"x": 1}, checks=checks)
    assert not res.passed and res.actual == 1
    # Built-ins are not in a fresh registry.
    assert execute(make_rule("RANGE:x:0:1"), {"x": 1}, checks=checks).skipped


def test_duplicate_prefix_registration_is_rejected():
    checks = CheckRegistry()
    checks.register(_AlwaysFails)
    with pytest.raises(ValueError, match="Duplicate"):
        checks.register(_AlwaysFails)


def test_builtin_registry_covers_all_formula_types():
    assert set(registry.ids()) == {
        "RECONCILE",
        "RANGE",
        "GREATER",
        "GTE",
        "EQUALS",
        "REQUIRES",
        "RATIO_MIN",
        "RATIO_MAX",
    }
    assert registry.lookup("gt") is registry.lookup("GREATER")


def test_non_ascii_digits_skip_one_rule_without_aborting_the_run(make_rule, caplog):
    rules = [
        make_rule("RATIO_MIN:a*²:1", rule_id="R1"),
        make_rule("RANGE:a:0:1", rule_id="R2"),
    ]
    with caplog.at_level(logging.WARNING):
        run = run_validation(rules, {"a": 5})

    assert [issue.rule_id for issue in run.issues] == ["R2"]
    assert run.counts == {"passed": 0, "failed": 1, "skipped": 1, "inactive": 0}
    assert [w.ref for w in run.warnings] == ["R1"]
    assert "R1" in caplog.text
