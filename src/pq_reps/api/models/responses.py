"""
Pydantic response models -- what the API returns.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...practice import GenerateConfig


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# GENERATE
# =============================================================================


class GenerateMetadata(_CamelModel):
    """Echo of the derived configuration plus the prompt that produced the script."""

    languages: list[str]
    practice_mode: str
    body_state: str
    eye_state: str
    primary_sense: str
    duration_minutes: int
    labeling_mode: str
    silence_profile: str
    normalization_frequency: str
    closing_style: str
    sense_rotation: str
    audience: str | None = None
    voice_style: str | None = None
    scenario_id: str | None = None
    custom_scenario_line: str | None = None
    tts_newline_pause_seconds: float | None = None
    prompt: str
    tts_provider: str = "none"
    voice: str = "n/a"
    validation: dict[str, Any] | None = None
    tts_prompt: dict[str, Any] | None = None

    @classmethod
    def from_config(cls, config: GenerateConfig, prompt: str, **extra: Any) -> "GenerateMetadata":
        return cls(
            languages=list(config.languages),
            practice_mode=config.mode.value,
            body_state=config.posture.value,
            eye_state=config.gaze.value,
            primary_sense=config.primary_sense.value,
            duration_minutes=config.duration_minutes,
            labeling_mode=config.labeling.value,
            silence_profile=config.silence.value,
            normalization_frequency=config.normalization.value,
            closing_style=config.closing.value,
            sense_rotation=config.rotation.value,
            audience=config.audience,
            voice_style=config.voice_style,
            scenario_id=config.scenario_id,
            custom_scenario_line=config.custom_scenario_line,
            tts_newline_pause_seconds=config.tts_newline_pause_seconds,
            prompt=prompt,
            **extra,
        )


class GenerateResponse(_CamelModel):
    script: str
    metadata: GenerateMetadata
    audio_base64: str | None = None
    audio_content_type: str | None = None


# =============================================================================
# CATALOG / STATUS
# =============================================================================


class ScenarioItem(_CamelModel):
    id: str
    label: str
    practice_type: str
    primary_sense: str
    duration_minutes: int


class ScenarioListResponse(_CamelModel):
    scenarios: list[ScenarioItem] = Field(default_factory=list)


class HealthResponse(_CamelModel):
    """Liveness probe payload."""

    status: str
    uptime_seconds: float
    rules_loaded: bool = False


class VersionResponse(_CamelModel):
    version: str
