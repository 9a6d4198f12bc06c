import os
import sys


BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from pathlib import Path

import pytest

from common.diagnostic_engine.config import ClientProfile, EngineConfig
from common.diagnostic_engine.context import AnalysisContext, build_context
from common.diagnostic_engine.models import (
    BenchmarkThreshold,
    InsightRule,
    KpiDefinition,
    ValidationRule,
)


@pytest.fixture
def fixtures_root() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def profile() -> ClientProfile:
    return ClientProfile(
        client_id="acme",
        company_name="Acme Heating & Air",
        industry="HVAC",
        region="Texas",
    )


@pytest.fixture
def make_ctx(profile):
    def _make(
        values: dict | None = None,
        *,
        kpis: list[KpiDefinition] | None = None,
        engine_config: EngineConfig | None = None,
        **profile_overrides,
    ) -> AnalysisContext:
        subject = ClientProfile.model_validate({**profile.model_dump(), **profile_overrides})
        return build_context(values or {}, profile=subject, engine_config=engine_config, kpis=kpis)

    return _make


@pytest.fixture
def make_rule():
    def _make(formula: str, *, rule_id: str = "VR-TEST", **fields) -> ValidationRule:
        return ValidationRule(id=rule_id, name=fields.pop("name", "Test rule"), formula=formula, **fields)

    return _make


@pytest.fixture
def make_benchmark():
    def _make(
        kpi_id: str = "kpi",
        industry: str = "all",
        region: str = "all",
        levels=(10, 20, 30, 40),
        **fields,
    ) -> BenchmarkThreshold:
        poor, average, good, excellent = levels
        return BenchmarkThreshold(
            kpi_id=kpi_id,
            industry_filter=industry,
            region_filter=region,
            poor=poor,
            average=average,
            good=good,
            excellent=excellent,
            **fields,
        )

    return _make


@pytest.fixture
def make_insight():
    def _make(rule_id: str, trigger: str, *, kpi_ids=("kpi",), **fields) -> InsightRule:
        return InsightRule(id=rule_id, trigger=trigger, kpi_ids=list(kpi_ids), **fields)

    return _make
