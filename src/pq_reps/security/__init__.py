"""Security utilities -- prompt injection detection and boundary input validation."""
from .prompt_guard import detect_injection_attempt, sanitize_for_prompt
from .validators import (
    CUSTOM_SCENARIO_LINE_MAX_LENGTH,
    ValidationError,
    validate_custom_scenario_line,
    validate_in_choices,
    validate_non_negative_number,
)
