from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from .config import ClientProfile, EngineConfig
from .environment import ValueEnvironment
from .expressions import evaluate
from .models import KpiDefinition


@dataclass(frozen=True)
class AnalysisContext:
    """Everything one analysis run reads. Built per client run, never shared."""

    env: ValueEnvironment
    profile: ClientProfile = field(default_factory=ClientProfile)
    engine_config: EngineConfig = field(default_factory=EngineConfig)
    kpis: Mapping[str, KpiDefinition] = field(default_factory=dict)

    def evaluate(self, expr: str) -> Optional[float]:
        return evaluate(expr, self.env, max_depth=self.engine_config.max_expression_depth)

    def kpi(self, kpi_id: str) -> KpiDefinition:
        definition = self.kpis.get(kpi_id) or self.kpis.get(kpi_id.lower())
        if definition is None:
            canonical = self.env.canonical_id(kpi_id) or kpi_id
            definition = KpiDefinition(id=canonical)
        return definition


def build_context(
    values: Mapping[str, object],
    *,
    profile: Optional[ClientProfile] = None,
    engine_config: Optional[EngineConfig] = None,
    kpis: Optional[list[KpiDefinition]] = None,
) -> AnalysisContext:
    env = values if isinstance(values, ValueEnvironment) else ValueEnvironment(values)
    index: dict[str, KpiDefinition] = {}
    for definition in kpis or []:
        index.setdefault(definition.id.lower(), definition)
    return AnalysisContext(
        env=env,
        profile=profile or ClientProfile(),
        engine_config=engine_config or EngineConfig(),
        kpis=index,
    )
