"""
Request parsing -- the API contract for incoming payloads.

Payloads are parsed at the boundary into typed values before anything else
touches them. Generate requests are checked field by field, in a fixed order,
so the first problem found decides the error code the caller sees:

    payload -> practiceType -> focus -> durationMinutes -> language
            -> voiceGender -> ttsNewlinePauseSeconds -> outputMode
            -> scenarioId -> customScenarioLine
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ...practice import (
    ALLOWED_DURATIONS,
    SCENARIOS,
    SUPPORTED_LANGUAGES,
    Focus,
    GenerateConfig,
    OutputMode,
    PracticeType,
    VoiceGender,
    derive_generate_config,
    get_scenario_by_id,
)
from ...security import (
    ValidationError,
    validate_custom_scenario_line,
    validate_in_choices,
    validate_non_negative_number,
)

DEFAULT_TTS_NEWLINE_PAUSE_SECONDS = 1.0


# =============================================================================
# GENERATE
# =============================================================================


@dataclass(frozen=True)
class GenerateRequest:
    """A validated POST /api/generate payload."""

    config: GenerateConfig
    output_mode: OutputMode | None = None
    debug_tts_prompt: bool = False


def _choice(payload: dict, key: str, enum_cls: type, code: str) -> Any:
    allowed = [member.value for member in enum_cls]
    return enum_cls(validate_in_choices(payload.get(key), allowed, code))


def _duration(value: Any) -> int:
    # JSON numbers like 5.0 are accepted; strings and booleans are not.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool) or value not in ALLOWED_DURATIONS:
        raise ValidationError(
            "invalid_duration",
            "durationMinutes must be a supported value",
            details={"allowed": list(ALLOWED_DURATIONS)},
        )
    return value


def _language(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("invalid_language", "language must be provided")
    if value not in SUPPORTED_LANGUAGES:
        raise ValidationError(
            "unsupported_language",
            f"language '{value}' is not supported",
            details={"unsupported": [value], "supported": list(SUPPORTED_LANGUAGES)},
        )
    return value


def _scenario_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or get_scenario_by_id(value) is None:
        raise ValidationError(
            "invalid_scenario",
            "scenarioId must be a known scenario",
            details={"allowed": [scenario.id for scenario in SCENARIOS]},
        )
    return value


def parse_generate_request(payload: Any) -> GenerateRequest:
    """
    Validate a generate payload and derive its full configuration.

    Raises:
        ValidationError: carrying the code of the first invalid field.
    """
    if not isinstance(payload, dict):
        raise ValidationError("invalid_payload", "payload must be a JSON object")

    practice_type = _choice(payload, "practiceType", PracticeType, "invalid_practice_type")
    focus = _choice(payload, "focus", Focus, "invalid_focus")
    duration = _duration(payload.get("durationMinutes"))
    language = _language(payload.get("language"))
    voice_gender = _choice(payload, "voiceGender", VoiceGender, "invalid_voice_gender")

    pause_seconds = validate_non_negative_number(
        payload.get("ttsNewlinePauseSeconds"), "invalid_tts_newline_pause"
    )
    if pause_seconds is None:
        pause_seconds = DEFAULT_TTS_NEWLINE_PAUSE_SECONDS

    output_mode = None
    if payload.get("outputMode") is not None:
        output_mode = _choice(payload, "outputMode", OutputMode, "invalid_output_mode")

    scenario_id = _scenario_id(payload.get("scenarioId"))
    custom_line = validate_custom_scenario_line(payload.get("customScenarioLine"))

    config = derive_generate_config(
        practice_type,
        focus,
        duration,
        language,
        voice_gender,
        tts_newline_pause_seconds=pause_seconds,
        scenario_id=scenario_id,
        custom_scenario_line=custom_line,
    )
    return GenerateRequest(
        config=config,
        output_mode=output_mode,
        debug_tts_prompt=payload.get("debugTtsPrompt") is True,
    )


# =============================================================================
# SPEECH
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TtsPayload(_CamelModel):
    """POST /api/tts body."""

    script: str
    language: str
    voice: str
    tts_newline_pause_seconds: float | None = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator("script", "language", "voice")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class VoicePreviewPayload(_CamelModel):
    """POST /api/voice-preview body. Both fields are optional."""

    language: str | None = None
    voice: str | None = None
