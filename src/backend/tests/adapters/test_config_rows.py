import pytest

from adapters.config_rows import (
    benchmark_rows_from_rows,
    insight_rules_from_rows,
    kpi_definitions_from_rows,
    validation_rules_from_rows,
    value_environment_from_rows,
)
from common.diagnostic_engine.models import (
    Direction,
    InsightKind,
    InsightStatus,
    KpiFormat,
    Severity,
    ThresholdPeriod,
)


def test_validation_rows_map_columns_and_severity_aliases():
    load = validation_rules_from_rows(
        [
            {
                "ID": "VR-1",
                "Name": "Revenue reconciles",
                "Formula": "RECONCILE:jobs*avg_ticket:revenue",
                "Tolerance": "",
                "Severity": "high",
                "Affected KPIs": "revenue, jobs",
                "Active": "FALSE",
            },
            {"id": "VR-2", "formula": "RANGE:x:0:1", "tolerance": "abc", "severity": "loud"},
            {"formula": "RANGE:x:0:1"},
        ],
        default_tolerance=0.05,
    )
    first, second = load.items
    assert first.severity == Severity.ERROR
    assert first.tolerance == 0.05
    assert first.affected_kpis == ["revenue", "jobs"]
    assert first.active is False
    assert second.severity == Severity.WARNING
    assert second.tolerance == 0.05
    assert [(w.ref, w.message) for w in load.warnings] == [
        ("VR-2", "Unknown severity 'loud'; using warning."),
        ("VR-2", "Non-numeric tolerance; using the default."),
        ("row 3", "Row has no rule id; dropped."),
    ]


def test_benchmark_rows_keep_order_and_degrade_bad_thresholds():
    load = benchmark_rows_from_rows(
        [
            {"kpi_id": "dso", "poor": "60", "average": "45", "good": "30", "excellent": "20", "direction": "lower_is_better"},
            {"kpi_id": "revenue", "industry": "HVAC", "state": "Texas", "poor": "1", "average": "2", "good": "n/a", "excellent": "4", "period": "Annual"},
            {"kpi_id": "x", "direction": "sideways"},
        ]
    )
    dso, revenue = load.items
    assert dso.direction == Direction.LOWER
    assert dso.industry_filter == "all"
    assert revenue.region_filter == "Texas"
    assert revenue.period == ThresholdPeriod.ANNUAL
    assert revenue.good is None
    assert [(w.ref, w.message) for w in load.warnings] == [
        ("revenue", "Threshold 'good' is missing or non-numeric."),
        ("x", "Unknown direction 'sideways'; row dropped."),
    ]


def test_insight_rows_infer_kind_and_collect_recommendations():
    load = insight_rules_from_rows(
        [
            {
                "id": "INS-1",
                "kpi_ids": "booking_rate, close_rate",
                "trigger": "booking_rate:poor- AND close_rate:poor-",
                "status": "Concern",
                "recommendation_2": "second",
                "recommendation_1": "first",
                "recommendation_10": "tenth",
                "priority": "3",
            },
            {
                "id": "INS-2",
                "kpi_ids": "gross_margin",
                "trigger": "good+",
                "recommendations": "a|b| |c|d|e|f",
                "priority": "soon",
            },
            {"id": "INS-3", "kpi_ids": "x"},
        ]
    )
    composite, single = load.items
    assert composite.kind == InsightKind.COMPOSITE
    assert composite.status == InsightStatus.CONCERN
    assert composite.recommendations == ["first", "second", "tenth"]
    assert composite.priority == 3
    assert single.kind == InsightKind.SINGLE
    assert single.recommendations == ["a", "b", "c", "d", "e"]
    assert single.priority == 0
    assert [(w.ref, w.message) for w in load.warnings] == [
        ("INS-2", "Non-numeric priority; using 0."),
        ("INS-3", "Row has no trigger; dropped."),
    ]


def test_kpi_rows_accept_format_aliases():
    load = kpi_definitions_from_rows(
        [
            {"kpi_id": "margin", "name": "Gross Margin", "format": "%"},
            {"kpi_id": "ticket", "format": "money", "decimals": "2"},
            {"kpi_id": "mystery", "format": "hieroglyph"},
        ]
    )
    assert [k.format for k in load.items] == [KpiFormat.PERCENTAGE, KpiFormat.CURRENCY, KpiFormat.NUMBER]
    assert load.items[1].decimals == 2
    assert load.items[2].display_name == "mystery"
    assert [w.ref for w in load.warnings] == ["mystery"]


def test_values_from_mapping_or_rows():
    env = value_environment_from_rows({"Revenue": "$1,200", "booking_rate": "45%", "spend": "N/A"})
    assert env.get_value("revenue") == 1200
    assert env.get_value("BOOKING_RATE") == 45
    assert env.get_value("spend") is None

    env = value_environment_from_rows([{"kpi_id": "jobs", "value": "40"}, {"kpi_id": "dso", "value": "-"}])
    assert env.get_value("jobs") == 40
    assert env.get_value("dso") is None


def test_non_mapping_rows_are_rejected():
    with pytest.raises(ValueError):
        validation_rules_from_rows(["VR-1,RANGE:x:0:1"])
