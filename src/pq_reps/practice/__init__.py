"""Practice configuration: user choices, derived generation parameters, prompts."""

from .derive import (
    GenerateConfig,
    derive_duration_config,
    derive_generate_config,
    derive_practice_config,
    derive_primary_sense,
    derive_sense_rotation,
    resolve_voice_style,
    to_session_config,
)
from .options import (
    ALLOWED_DURATIONS,
    SUPPORTED_LANGUAGES,
    Focus,
    OutputMode,
    PracticeType,
    VoiceGender,
)
from .prompt_builder import SCENARIOS, Scenario, build_prompt, get_scenario_by_id

__all__ = [
    "ALLOWED_DURATIONS",
    "SCENARIOS",
    "SUPPORTED_LANGUAGES",
    "Focus",
    "GenerateConfig",
    "OutputMode",
    "PracticeType",
    "Scenario",
    "VoiceGender",
    "build_prompt",
    "derive_duration_config",
    "derive_generate_config",
    "derive_practice_config",
    "derive_primary_sense",
    "derive_sense_rotation",
    "get_scenario_by_id",
    "resolve_voice_style",
    "to_session_config",
]
