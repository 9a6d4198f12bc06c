from common.diagnostic_engine.config import ClientProfile, EngineConfig
from common.diagnostic_engine.models import (
    BenchmarkResult,
    Direction,
    KpiDefinition,
    KpiFormat,
    Rating,
)
from common.diagnostic_engine.templates import format_value, kpi_fields, render, round_value, universal_fields

CONFIG = EngineConfig()


def test_render_substitutes_known_placeholders():
    assert render("{value_formatted} in {industry}", {"value_formatted": "45%", "industry": "HVAC"}) == "45% in HVAC"


def test_render_deletes_unresolved_placeholders():
    assert render("{missing}", {}) == ""
    assert render("a{missing}b {none}", {"none": None}) == "ab "
    # Non-identifier braces are literal text.
    assert render("{ not a placeholder }", {}) == "{ not a placeholder }"


def test_format_value_by_kpi_format():
    assert format_value(45, KpiDefinition(id="k", format=KpiFormat.PERCENTAGE), CONFIG) == "45%"
    assert format_value(45.25, KpiDefinition(id="k", format=KpiFormat.PERCENTAGE), CONFIG) == "45.2%"
    assert format_value(1234.56, KpiDefinition(id="k", format=KpiFormat.CURRENCY), CONFIG) == "$1,235"
    assert format_value(-50, KpiDefinition(id="k", format=KpiFormat.CURRENCY), CONFIG) == "-$50"
    assert format_value(1.5, KpiDefinition(id="k", format=KpiFormat.RATIO), CONFIG) == "1.5x"
    assert format_value(42, KpiDefinition(id="k", format=KpiFormat.DAYS), CONFIG) == "42 days"
    assert format_value(1234.5, KpiDefinition(id="k"), CONFIG) == "1,234.5"
    assert format_value(None, KpiDefinition(id="k"), CONFIG) == ""


def test_format_value_honours_kpi_decimals_and_currency_symbol():
    config = EngineConfig(currency_symbol="€")
    assert format_value(99.5, KpiDefinition(id="k", format=KpiFormat.CURRENCY, decimals=2), config) == "€99.50"


def test_round_value_trims_trailing_zeros():
    assert round_value(12.0, 2) == "12"
    assert round_value(12.345, 1) == "12.3"
    assert round_value(-0.001, 2) == "0"


def test_kpi_fields_plain_and_prefixed():
    result = BenchmarkResult(
        kpi_id="booking_rate",
        value=45,
        rating=Rating.AVERAGE,
        direction=Direction.HIGHER,
        poor=35,
        average=45,
        good=55,
        excellent=65,
    )
    kpi = KpiDefinition(id="booking_rate", name="Booking Rate", format=KpiFormat.PERCENTAGE)
    fields = kpi_fields(result, kpi, CONFIG)
    assert fields["value_formatted"] == "45%"
    assert fields["value_rounded"] == "45"
    assert fields["rating"] == "average"
    assert fields["kpi_name"] == "Booking Rate"
    assert fields["benchmark_good"] == "55%"

    prefixed = kpi_fields(result, kpi, CONFIG, prefix="booking_rate")
    assert prefixed["booking_rate_formatted"] == "45%"
    assert prefixed["booking_rate_value"] == 45
    assert prefixed["booking_rate_rounded"] == "45"
    assert prefixed["booking_rate_rating"] == "average"
    assert prefixed["booking_rate_name"] == "Booking Rate"
    assert prefixed["booking_rate_benchmark_excellent"] == "65%"


def test_universal_fields_expose_state_from_region():
    fields = universal_fields(ClientProfile(company_name="Acme", industry="HVAC", region="Texas"))
    assert fields == {"company_name": "Acme", "industry": "HVAC", "state": "Texas"}
