"""
Input Validators - Validation for user input at system boundaries.

Parse at the boundary: validate and type-check all external input
before it enters the system. Never pass raw dicts or unvalidated
strings through multiple layers.

Every failure carries a stable error `code`; the API layer translates the
code into the caller's locale ("errors.<code>").
"""

import logging
import math
import re
from typing import Any

from .prompt_guard import detect_injection_attempt

logger = logging.getLogger(__name__)

CUSTOM_SCENARIO_LINE_MAX_LENGTH = 120
CUSTOM_SCENARIO_LINE_PATTERN = re.compile(r"^[\w\s.,;:!?'\"’()\-]+$")
URL_PATTERN = re.compile(r"(https?://|www\.)\S+", re.IGNORECASE)


class ValidationError(ValueError):
    """Raised when input validation fails. Carries an error code and optional details."""

    def __init__(
        self,
        code: str,
        message: str = "",
        details: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ):
        super().__init__(message or code)
        self.code = code
        self.details = details
        self.params = params or {}


def validate_in_choices(value: Any, choices: tuple | list, code: str) -> Any:
    """Validate that a value is one of the allowed choices."""
    if isinstance(value, bool) or value not in choices:
        raise ValidationError(
            code,
            f"value must be one of: {', '.join(str(c) for c in choices)}",
            details={"allowed": list(choices)},
        )
    return value


def validate_non_negative_number(value: Any, code: str) -> float | None:
    """Accept numbers or numeric strings >= 0. None and blank strings mean "not given"."""
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = float(value)
        except ValueError:
            raise ValidationError(code, "value must be a number") from None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(code, "value must be a number")
    if not math.isfinite(value) or value < 0:
        raise ValidationError(code, f"value must be non-negative (got {value})")
    return float(value)


def validate_custom_scenario_line(value: Any) -> str | None:
    """
    Validate the optional one-line scenario context a user can add.

    Rules:
      - must be a single line of letters, digits, spaces and basic punctuation
      - at most CUSTOM_SCENARIO_LINE_MAX_LENGTH characters
      - no URLs, no prompt-injection patterns

    Returns:
        The trimmed line, or None when omitted/blank.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("invalid_custom_scenario_line", "line must be a string")

    line = value.strip()
    if not line:
        return None
    if len(line) > CUSTOM_SCENARIO_LINE_MAX_LENGTH:
        raise ValidationError(
            "custom_scenario_line_too_long",
            f"line must be at most {CUSTOM_SCENARIO_LINE_MAX_LENGTH} characters",
            details={"max": CUSTOM_SCENARIO_LINE_MAX_LENGTH},
            params={"max": CUSTOM_SCENARIO_LINE_MAX_LENGTH},
        )
    if URL_PATTERN.search(line) or detect_injection_attempt(line):
        raise ValidationError("custom_scenario_line_disallowed", "line contains disallowed content")
    if "\n" in line or "\r" in line or not CUSTOM_SCENARIO_LINE_PATTERN.match(line):
        raise ValidationError("invalid_custom_scenario_line", "line contains unsupported characters")

    logger.debug(f"[Validators] Custom scenario line accepted ({len(line)} chars)")
    return line
