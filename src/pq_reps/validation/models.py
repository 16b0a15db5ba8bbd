"""Data models for the script compliance validator."""

from dataclasses import dataclass, field
from enum import Enum

INTENTIONAL_PAUSE_SECONDS = 3.0


class Severity(str, Enum):
    """How a finding affects the overall result. Only FAIL blocks a script."""

    FAIL = "fail"
    WARN = "warn"


@dataclass(frozen=True)
class Sentence:
    """A trimmed sentence and its 0-based position among non-empty sentences."""

    index: int
    text: str


@dataclass(frozen=True)
class PauseToken:
    """A `[pause:<value>]` marker found in the script.

    Attributes:
        raw: The full matched marker, e.g. "[pause:10]".
        value_text: The text between the colon and the closing bracket.
        seconds: Parsed value, or None when the value is not a finite number.
        position: Character offset of the marker in the script.
    """

    raw: str
    value_text: str
    seconds: float | None
    position: int

    @property
    def is_valid(self) -> bool:
        return self.seconds is not None

    @property
    def is_intentional(self) -> bool:
        """Valid pauses of 3s or more are deliberate silences, not line-break pauses."""
        return self.seconds is not None and self.seconds >= INTENTIONAL_PAUSE_SECONDS


@dataclass(frozen=True)
class ValidationFailure:
    """A single finding produced by a rule.

    Attributes:
        rule_id: Stable identifier (e.g. "SILENCE_CUE_REQUIRED").
        severity: FAIL blocks the script; WARN is reported only.
        message: Human-readable explanation of what's wrong.
        evidence: Short snippet pointing at the offending text.
    """

    rule_id: str
    severity: Severity
    message: str
    evidence: str

    def to_dict(self) -> dict:
        return {
            "ruleId": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "evidenceSnippet": self.evidence,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one script.

    `passed` is derived: True iff no finding has FAIL severity.
    """

    failures: tuple[ValidationFailure, ...] = ()
    passed: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "passed",
            not any(f.severity is Severity.FAIL for f in self.failures),
        )

    @property
    def fail_count(self) -> int:
        return sum(1 for f in self.failures if f.severity is Severity.FAIL)

    @property
    def warn_count(self) -> int:
        return sum(1 for f in self.failures if f.severity is Severity.WARN)

    @property
    def rule_ids(self) -> list[str]:
        return [f.rule_id for f in self.failures]

    def to_dict(self) -> dict:
        return {
            "pass": self.passed,
            "failures": [f.to_dict() for f in self.failures],
        }


def fail(rule_id: str, message: str, evidence: str) -> ValidationFailure:
    return ValidationFailure(rule_id, Severity.FAIL, message, evidence)


def warn(rule_id: str, message: str, evidence: str) -> ValidationFailure:
    return ValidationFailure(rule_id, Severity.WARN, message, evidence)
