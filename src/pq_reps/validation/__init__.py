"""Script compliance validation: rule configuration, session parameters, validator."""

from .models import Severity, ValidationFailure, ValidationResult
from .rule_config import RuleConfig, RuleConfigError, load_rule_config, parse_rule_config
from .session import (
    BodyState,
    ClosingStyle,
    EyeState,
    LabelingMode,
    NormalizationFrequency,
    PracticeMode,
    PrimarySense,
    SenseRotation,
    SessionConfig,
    SilenceProfile,
)
from .validator import validate_script

__all__ = [
    "BodyState",
    "ClosingStyle",
    "EyeState",
    "LabelingMode",
    "NormalizationFrequency",
    "PracticeMode",
    "PrimarySense",
    "RuleConfig",
    "RuleConfigError",
    "SenseRotation",
    "SessionConfig",
    "Severity",
    "SilenceProfile",
    "ValidationFailure",
    "ValidationResult",
    "load_rule_config",
    "parse_rule_config",
    "validate_script",
]
