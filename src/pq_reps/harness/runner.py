"""
Prompt-drift runner.

For each case: build (or take) the user prompt, generate a script with the
provider, write it to outputs/<case>.txt, and validate it against the rules.
A provider failure becomes a GENERATION_ERROR result instead of aborting the
run.
"""

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path

from ..llm.client import DEFAULT_MODEL
from ..validation import RuleConfig, ValidationFailure, validate_script
from ..validation.models import fail
from .cases import load_cases
from .models import STATUS_FAIL, CaseResult, HarnessCase, HarnessError, Report, ReportSummary, status_for
from .prompt import build_user_prompt
from .providers import ScriptProvider
from .report_writer import write_reports

logger = logging.getLogger(__name__)

GENERATION_ERROR = "GENERATION_ERROR"


def sanitize_file_name(value: str) -> str:
    cleaned = re.sub(r"[^a-z0-9\-_]+", "_", value.lower())
    return re.sub(r"_+", "_", cleaned)


def _resolve_model(case: HarnessCase, model: str | None) -> str:
    return case.model or model or os.environ.get("OPENAI_MODEL", "").strip() or DEFAULT_MODEL


async def run_case(
    case: HarnessCase,
    provider: ScriptProvider,
    system_prompt: str,
    system_prompt_path: str,
    outputs_dir: Path,
    rules: RuleConfig,
    model: str | None = None,
    temperature: float | None = None,
) -> CaseResult:
    user_prompt = case.prompt or build_user_prompt(case.inputs)
    model_name = _resolve_model(case, model)
    case_temperature = case.temperature if case.temperature is not None else temperature
    output_path = outputs_dir / f"{sanitize_file_name(case.id)}.txt"

    result = CaseResult(
        case_id=case.id,
        description=case.description,
        status=STATUS_FAIL,
        failures=[],
        model=model_name,
        temperature=case_temperature,
        prompt_path=system_prompt_path,
        output_path=str(output_path),
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        inputs=case.inputs.model_dump(mode="json", by_alias=True),
    )

    try:
        output = await provider.generate(
            system_prompt, user_prompt, model=model_name, temperature=case_temperature, inputs=case.inputs
        )
        output_path.write_text(output, encoding="utf-8")
    except (HarnessError, OSError) as e:
        logger.warning(f"[Harness] Case {case.id} generation failed: {e}")
        result.failures = [fail(GENERATION_ERROR, str(e), "Generator error")]
        return result

    validation = validate_script(output, case.inputs, rules)
    failures: list[ValidationFailure] = list(validation.failures)
    result.failures = failures
    result.status = status_for(failures)
    logger.info(f"[Harness] Case {case.id}: {result.status} ({len(failures)} findings)")
    return result


async def run_harness(
    system_prompt_path: str | Path,
    cases_path: str | Path,
    output_dir: str | Path,
    provider: ScriptProvider,
    rules: RuleConfig | None = None,
    model: str | None = None,
    temperature: float | None = None,
) -> Report:
    """
    Run every case in `cases_path` and write outputs plus reports under `output_dir`.

    Raises:
        HarnessError: If the system prompt or cases file cannot be read.
    """
    system_prompt_path = Path(system_prompt_path).resolve()
    cases_path = Path(cases_path).resolve()
    output_dir = Path(output_dir).resolve()

    try:
        system_prompt = system_prompt_path.read_text(encoding="utf-8")
    except OSError as e:
        raise HarnessError(f"Cannot read system prompt {system_prompt_path}: {e}") from e
    cases = load_cases(cases_path)
    rules = rules or RuleConfig()

    outputs_dir = output_dir / "outputs"
    outputs_dir.mkdir(parents=True, exist_ok=True)

    results = []
    for case in cases:
        results.append(
            await run_case(
                case,
                provider,
                system_prompt,
                str(system_prompt_path),
                outputs_dir,
                rules,
                model=model,
                temperature=temperature,
            )
        )

    report = Report(
        generated_at=datetime.now(timezone.utc).isoformat(),
        system_prompt_path=str(system_prompt_path),
        cases_path=str(cases_path),
        output_directory=str(output_dir),
        summary=ReportSummary.from_results(results),
        results=results,
    )
    write_reports(output_dir, report)
    return report
