from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from adapters.config_rows import (
    benchmark_rows_from_rows,
    insight_rules_from_rows,
    kpi_definitions_from_rows,
    validation_rules_from_rows,
    value_environment_from_rows,
)
from common.diagnostic_engine.config import ClientProfile, EngineConfig
from common.diagnostic_engine.context import AnalysisContext, build_context
from common.diagnostic_engine.models import ConfigWarning
from common.diagnostic_engine.runner import ConfigSnapshot

logger = logging.getLogger(__name__)

ENGINE_CONFIG_FILES = ("engine.yaml", "engine.yml", "engine.json")


@dataclass(frozen=True)
class AnalysisInputs:
    context: AnalysisContext
    config: ConfigSnapshot
    load_warnings: tuple[ConfigWarning, ...] = field(default_factory=tuple)


class DataSource(Protocol):
    def build_analysis_inputs(self, *, client_id: str) -> AnalysisInputs:
        """Return canonical inputs for the analysis runner."""
        ...


def get_data_source(name: str, **kwargs: Any) -> DataSource:
    """Resolve a data source implementation by name (fixtures only)."""
    source = (name or "").strip().lower()
    if source in ("fixtures", ""):
        return FixturesDataSource(**kwargs)
    raise ValueError(f"Unknown data source '{name}' (expected 'fixtures').")


class FixturesDataSource:
    """Reads one directory per client: `<root>/<client_id>/`."""

    def __init__(self, *, fixtures_root: Path | None = None) -> None:
        self._fixtures_root = fixtures_root or _default_fixtures_root()

    def build_analysis_inputs(self, *, client_id: str) -> AnalysisInputs:
        return build_fixture_inputs(self._fixtures_root / client_id)


def _load_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def _load_csv(path: Path) -> list[dict[str, str]]:
    if not path.exists():
        return []
    with path.open(newline="", encoding="utf-8-sig") as handle:
        return list(csv.DictReader(handle))


def _load_values(fixtures_dir: Path) -> Any:
    json_path = fixtures_dir / "values.json"
    if json_path.exists():
        return _load_json(json_path)
    return _load_csv(fixtures_dir / "values.csv")


def _load_engine_config(fixtures_dir: Path) -> EngineConfig:
    for name in ENGINE_CONFIG_FILES:
        path = fixtures_dir / name
        if path.exists():
            return EngineConfig.from_file(path)
    return EngineConfig()


def build_fixture_inputs(fixtures_dir: Path) -> AnalysisInputs:
    """Assemble context + config snapshot from a fixtures directory.

    Expected files (all optional except client.json):
      client.json, values.json | values.csv, kpis.csv, validation_rules.csv,
      benchmarks.csv, insight_rules.csv, engine.yaml | engine.json
    """
    fixtures_dir = Path(fixtures_dir)
    client_path = fixtures_dir / "client.json"
    if not client_path.exists():
        raise FileNotFoundError(f"Missing client profile: {client_path}")

    profile = ClientProfile.model_validate(_load_json(client_path))
    engine_config = _load_engine_config(fixtures_dir)

    kpis = kpi_definitions_from_rows(_load_csv(fixtures_dir / "kpis.csv"))
    validation = validation_rules_from_rows(
        _load_csv(fixtures_dir / "validation_rules.csv"),
        default_tolerance=engine_config.default_tolerance,
    )
    benchmarks = benchmark_rows_from_rows(_load_csv(fixtures_dir / "benchmarks.csv"))
    insights = insight_rules_from_rows(_load_csv(fixtures_dir / "insight_rules.csv"))

    env = value_environment_from_rows(_load_values(fixtures_dir))
    context = build_context(env, profile=profile, engine_config=engine_config, kpis=kpis.items)
    config = ConfigSnapshot.of(
        validation_rules=validation.items,
        benchmarks=benchmarks.items,
        insight_rules=insights.items,
    )
    warnings = (*kpis.warnings, *validation.warnings, *benchmarks.warnings, *insights.warnings)
    for warning in warnings:
        logger.warning("Config %s %s: %s", warning.source, warning.ref, warning.message)
    return AnalysisInputs(context=context, config=config, load_warnings=tuple(warnings))


def _default_fixtures_root() -> Path:
    return Path(__file__).resolve().parents[1] / "tests" / "diagnostic_engine" / "fixtures"
