"""
Harness data model -- cases in, case results and a report out.

Cases are read from JSON/YAML files; results and reports are written back as
camelCase JSON so they line up with the validator's serialized findings.
"""

from dataclasses import dataclass, field
from typing import Any

from ..validation import SessionConfig, Severity, ValidationFailure


class HarnessError(Exception):
    """Raised for unreadable case files, missing inputs, or unusable options."""

    pass


STATUS_PASS = "pass"
STATUS_WARN = "warn"
STATUS_FAIL = "fail"


@dataclass(frozen=True)
class HarnessCase:
    """One prompt-drift case: the session inputs and optional overrides."""

    id: str
    inputs: SessionConfig
    description: str | None = None
    prompt: str | None = None
    model: str | None = None
    temperature: float | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class CaseResult:
    case_id: str
    status: str
    failures: list[ValidationFailure]
    model: str
    prompt_path: str
    output_path: str
    system_prompt: str = ""
    user_prompt: str = ""
    inputs: dict[str, Any] = field(default_factory=dict)
    description: str | None = None
    temperature: float | None = None

    @property
    def fail_count(self) -> int:
        return sum(1 for f in self.failures if f.severity is Severity.FAIL)

    @property
    def warn_count(self) -> int:
        return sum(1 for f in self.failures if f.severity is Severity.WARN)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "caseId": self.case_id,
            "description": self.description,
            "promptPath": self.prompt_path,
            "outputPath": self.output_path,
            "status": self.status,
            "failures": [f.to_dict() for f in self.failures],
            "model": self.model,
            "temperature": self.temperature,
            "inputs": self.inputs,
        }
        return {k: v for k, v in data.items() if v is not None}


def status_for(failures: list[ValidationFailure]) -> str:
    """fail beats warn beats pass."""
    if any(f.severity is Severity.FAIL for f in failures):
        return STATUS_FAIL
    if any(f.severity is Severity.WARN for f in failures):
        return STATUS_WARN
    return STATUS_PASS


@dataclass
class ReportSummary:
    total: int = 0
    passed: int = 0
    warned: int = 0
    failed: int = 0

    @classmethod
    def from_results(cls, results: list[CaseResult]) -> "ReportSummary":
        return cls(
            total=len(results),
            passed=sum(1 for r in results if r.status == STATUS_PASS),
            warned=sum(1 for r in results if r.status == STATUS_WARN),
            failed=sum(1 for r in results if r.status == STATUS_FAIL),
        )

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "passed": self.passed, "warned": self.warned, "failed": self.failed}


@dataclass
class Report:
    generated_at: str
    system_prompt_path: str
    cases_path: str
    output_directory: str
    summary: ReportSummary
    results: list[CaseResult]

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "systemPromptPath": self.system_prompt_path,
            "casesPath": self.cases_path,
            "outputDirectory": self.output_directory,
            "summary": self.summary.to_dict(),
            "results": [r.to_dict() for r in self.results],
        }
