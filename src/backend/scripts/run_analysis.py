from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def _write_markdown(report, out_path: Path) -> None:
    lines = [
        f"# KPI Diagnostic {report.client_id or report.run_id}",
        "",
        f"Generated at: {report.generated_at.isoformat()}",
        "",
        "## Totals",
    ]
    for key, count in report.totals.items():
        lines.append(f"- {key}: {count}")

    lines.append("")
    lines.append("## Validation issues")
    if not report.issues:
        lines.append("- None")
    for issue in report.issues:
        lines.append(f"- [{issue.severity.value}] {issue.rule_id}: {issue.message}")
        if issue.actual is not None or issue.expected is not None:
            lines.append(f"  - actual={issue.actual} expected={issue.expected} variance={issue.variance}")

    lines.append("")
    lines.append("## Ratings")
    for bench in report.benchmarks:
        lines.append(
            f"- {bench.kpi_id}: {bench.rating.value} (value={bench.value}; "
            f"poor={bench.poor}, average={bench.average}, good={bench.good}, excellent={bench.excellent}; "
            f"{bench.direction.value} is better; scope {bench.industry_filter}/{bench.region_filter})"
        )

    for section_id, results in report.sections.items():
        lines.append("")
        lines.append(f"## Insights: {section_id or 'general'}")
        for res in results:
            lines.append("")
            lines.append(f"### {res.title or res.id} ({res.status.value})")
            if res.summary:
                lines.append(res.summary)
            if res.detail:
                lines.append("")
                lines.append(res.detail)
            for rec in res.recommendations:
                lines.append(f"- {rec}")

    if report.config_warnings:
        lines.append("")
        lines.append("## Configuration warnings")
        for warning in report.config_warnings:
            lines.append(f"- {warning.source} {warning.ref}: {warning.message}")
    out_path.write_text("\n".join(lines) + "\n")


def run_analysis_from_inputs(inputs, *, rule_ids: set[str] | None = None):
    _ensure_backend_on_path()
    from common.diagnostic_engine.runner import AnalysisRunner

    report = AnalysisRunner().run(inputs.context, inputs.config, rule_ids=rule_ids)
    if inputs.load_warnings:
        report = report.model_copy(
            update={"config_warnings": [*inputs.load_warnings, *report.config_warnings]}
        )
    return report


def run_analysis_from_fixtures(fixtures_dir: Path, *, rule_ids: set[str] | None = None):
    _ensure_backend_on_path()
    from pipelines.data_source import build_fixture_inputs

    return run_analysis_from_inputs(build_fixture_inputs(fixtures_dir), rule_ids=rule_ids)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a KPI diagnostic against a fixtures directory and write JSON/MD outputs."
    )
    parser.add_argument(
        "--fixtures-dir",
        required=True,
        help="Path to a client fixtures directory (e.g. src/backend/tests/diagnostic_engine/fixtures/acme_hvac).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Output directory for report files (defaults to fixtures dir).",
    )
    parser.add_argument(
        "--format",
        choices=("all", "json", "md"),
        default="all",
        help="Which report files to write (default: all).",
    )
    parser.add_argument(
        "--rule-id",
        action="append",
        dest="rule_ids",
        default=None,
        help="Limit validation to this rule id (repeatable).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: WARNING).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    fixtures_dir = Path(args.fixtures_dir).resolve()
    output_dir = Path(args.output_dir).resolve() if args.output_dir else fixtures_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    report = run_analysis_from_fixtures(
        fixtures_dir,
        rule_ids=set(args.rule_ids) if args.rule_ids else None,
    )

    base_name = f"kpi_diagnostic_{report.client_id or fixtures_dir.name}"
    if args.format in ("all", "json"):
        out_json = output_dir / f"{base_name}.json"
        out_json.write_text(json.dumps(report.model_dump(mode="json"), indent=2))
        print(f"Wrote {out_json}")
    if args.format in ("all", "md"):
        out_md = output_dir / f"{base_name}.md"
        _write_markdown(report, out_md)
        print(f"Wrote {out_md}")
    return 0


if __name__ == "__main__":
    _ensure_backend_on_path()
    raise SystemExit(main())
