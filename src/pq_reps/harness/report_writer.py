"""
Report writers -- reports/report.json and reports/report.md under the output dir.
"""

import json
import logging
from pathlib import Path

from .models import CaseResult, Report

logger = logging.getLogger(__name__)


def write_reports(output_dir: str | Path, report: Report) -> tuple[Path, Path]:
    reports_dir = Path(output_dir) / "reports"
    reports_dir.mkdir(parents=True, exist_ok=True)

    json_path = reports_dir / "report.json"
    json_path.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")

    md_path = reports_dir / "report.md"
    md_path.write_text(to_markdown(report), encoding="utf-8")

    logger.info(f"[Harness] Reports written to {reports_dir}")
    return json_path, md_path


def to_markdown(report: Report) -> str:
    summary = report.summary
    lines = [
        "# Prompt Drift Report",
        "",
        f"Generated: {report.generated_at}",
        f"System prompt: {report.system_prompt_path}",
        f"Cases file: {report.cases_path}",
        f"Output directory: {report.output_directory}",
        "",
        f"Total: {summary.total}",
        f"Passed: {summary.passed}",
        f"Warnings: {summary.warned}",
        f"Failed: {summary.failed}",
        "",
        "| Case ID | Status | Failures |",
        "| --- | --- | --- |",
    ]
    for result in report.results:
        counts = []
        if result.fail_count:
            counts.append(f"{result.fail_count} fail")
        if result.warn_count:
            counts.append(f"{result.warn_count} warn")
        lines.append(f"| {result.case_id} | {result.status} | {', '.join(counts) or '0'} |")

    lines.append("")
    lines.append("\n\n".join(_case_details(result) for result in report.results))
    return "\n".join(lines)


def _case_details(result: CaseResult) -> str:
    temperature = "default" if result.temperature is None else f"{result.temperature:g}"
    lines = [
        f"## {result.case_id}",
        "",
        f"Status: {result.status}",
        f"Model: {result.model}",
        f"Temperature: {temperature}",
        f"Output: {result.output_path}",
        "",
    ]

    if result.failures:
        lines.append("Failures:")
        for failure in result.failures:
            lines.append(
                f"- **{failure.rule_id}** ({failure.severity.value}): "
                f"{failure.message} ({failure.evidence})"
            )
        lines.append("")

    lines += [
        "Inputs:",
        "```json",
        json.dumps(result.inputs, indent=2),
        "```",
        "",
        "System prompt:",
        "```text",
        result.system_prompt.strip(),
        "```",
        "",
        "User prompt:",
        "```text",
        result.user_prompt.strip(),
        "```",
    ]
    return "\n".join(lines)
