"""
Config derivation -- turns the user's few choices into full generation parameters.

    derive_generate_config(practice_type, focus, duration, language, gender)
        -> GenerateConfig  (prompt inputs + voice)
        -> to_session_config(...)  (validator inputs)
"""

from dataclasses import dataclass

from ..validation.session import (
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
from .options import (
    Closing,
    Focus,
    Gaze,
    GuidanceMode,
    Labeling,
    Normalization,
    Posture,
    PracticeType,
    Rotation,
    Silence,
    VoiceGender,
)

FEMALE_VOICES_BY_LANGUAGE = {"es": "nova", "fr": "nova"}
MALE_VOICES_BY_LANGUAGE = {"es": "onyx", "fr": "onyx"}
DEFAULT_FEMALE_VOICE = "alloy"
DEFAULT_MALE_VOICE = "ash"


@dataclass(frozen=True)
class PracticeConfig:
    mode: GuidanceMode
    posture: Posture
    gaze: Gaze
    labeling: Labeling


@dataclass(frozen=True)
class DurationConfig:
    silence: Silence
    normalization: Normalization
    closing: Closing


@dataclass(frozen=True)
class GenerateConfig:
    """Everything the prompt builder and speech synthesis need for one session."""

    languages: tuple[str, ...]
    mode: GuidanceMode
    posture: Posture
    gaze: Gaze
    primary_sense: Focus
    duration_minutes: int
    labeling: Labeling
    silence: Silence
    normalization: Normalization
    closing: Closing
    rotation: Rotation = Rotation.NONE
    scenario_id: str | None = None
    audience: str | None = None
    voice_style: str | None = None
    custom_scenario_line: str | None = None
    tts_newline_pause_seconds: float | None = None

    @property
    def language(self) -> str:
        return self.languages[0] if self.languages else "en"


def resolve_voice_style(gender: VoiceGender, language: str) -> str:
    if gender is VoiceGender.MALE:
        return MALE_VOICES_BY_LANGUAGE.get(language, DEFAULT_MALE_VOICE)
    return FEMALE_VOICES_BY_LANGUAGE.get(language, DEFAULT_FEMALE_VOICE)


def derive_practice_config(practice_type: PracticeType, duration_minutes: int) -> PracticeConfig:
    if practice_type is PracticeType.STILL_EYES_CLOSED:
        return PracticeConfig(GuidanceMode.TACTILE, Posture.STILL_SEATED_CLOSED_EYES, Gaze.CLOSED, Labeling.NONE)
    if practice_type is PracticeType.STILL_EYES_OPEN:
        return PracticeConfig(GuidanceMode.SITTING, Posture.STILL_SEATED, Gaze.OPEN_DIFFUSED, Labeling.NONE)
    if practice_type is PracticeType.MOVING:
        return PracticeConfig(GuidanceMode.MOVING, Posture.MOVING, Gaze.OPEN_FOCUSED, Labeling.NONE)

    # Labeling: short sessions anchor, longer ones scan.
    if duration_minutes < 5:
        return PracticeConfig(
            GuidanceMode.LABEL_WITH_ANCHOR, Posture.STILL_SEATED_CLOSED_EYES, Gaze.CLOSED, Labeling.BREATH_ANCHOR
        )
    return PracticeConfig(
        GuidanceMode.LABEL_WHILE_SCANNING, Posture.STILL_SEATED_CLOSED_EYES, Gaze.CLOSED, Labeling.SCAN_AND_LABEL
    )


def derive_duration_config(duration_minutes: int) -> DurationConfig:
    if duration_minutes <= 2:
        return DurationConfig(Silence.NONE, Normalization.ONCE, Closing.MINIMAL)
    if duration_minutes == 5:
        return DurationConfig(Silence.SHORT_PAUSES, Normalization.PERIODIC, Closing.PQ_FRAMED)
    return DurationConfig(Silence.EXTENDED_SILENCE, Normalization.REPEATED, Closing.PQ_FRAMED_WITH_PROGRESSION)


def derive_sense_rotation(practice_type: PracticeType, duration_minutes: int) -> Rotation:
    if duration_minutes >= 5 and practice_type is not PracticeType.LABELING:
        return Rotation.GUIDED_ROTATION
    return Rotation.NONE


def derive_primary_sense(focus: Focus, gaze: Gaze) -> Focus:
    """Sight cannot be the anchor with eyes closed; fall back to touch."""
    if focus is Focus.SIGHT and gaze is Gaze.CLOSED:
        return Focus.TOUCH
    return focus


def derive_generate_config(
    practice_type: PracticeType,
    focus: Focus,
    duration_minutes: int,
    language: str,
    voice_gender: VoiceGender,
    tts_newline_pause_seconds: float | None = None,
    scenario_id: str | None = None,
    custom_scenario_line: str | None = None,
) -> GenerateConfig:
    practice = derive_practice_config(practice_type, duration_minutes)
    duration = derive_duration_config(duration_minutes)

    return GenerateConfig(
        languages=(language,),
        mode=practice.mode,
        posture=practice.posture,
        gaze=practice.gaze,
        primary_sense=derive_primary_sense(focus, practice.gaze),
        duration_minutes=duration_minutes,
        labeling=practice.labeling,
        silence=duration.silence,
        normalization=duration.normalization,
        closing=duration.closing,
        rotation=derive_sense_rotation(practice_type, duration_minutes),
        scenario_id=scenario_id,
        voice_style=resolve_voice_style(voice_gender, language),
        custom_scenario_line=custom_scenario_line,
        tts_newline_pause_seconds=tts_newline_pause_seconds,
    )


# =============================================================================
# VALIDATOR MAPPING
# =============================================================================

_SILENCE_PROFILES = {
    Silence.NONE: SilenceProfile.NONE,
    Silence.SHORT_PAUSES: SilenceProfile.LIGHT,
    Silence.EXTENDED_SILENCE: SilenceProfile.DEEP,
}

_NORMALIZATION_FREQUENCIES = {
    Normalization.ONCE: NormalizationFrequency.ONCE,
    Normalization.PERIODIC: NormalizationFrequency.REPEAT,
    Normalization.REPEATED: NormalizationFrequency.REPEAT,
}

_CLOSING_STYLES = {
    Closing.MINIMAL: ClosingStyle.STOP,
    Closing.PQ_FRAMED: ClosingStyle.SOFT,
    Closing.PQ_FRAMED_WITH_PROGRESSION: ClosingStyle.FORMAL,
}

_LABELING_MODES = {
    Labeling.NONE: LabelingMode.NONE,
    Labeling.BREATH_ANCHOR: LabelingMode.LIGHT,
    Labeling.SCAN_AND_LABEL: LabelingMode.EXPLICIT,
}

_SENSE_ROTATIONS = {
    Rotation.NONE: SenseRotation.NONE,
    Rotation.FREE_CHOICE: SenseRotation.LIGHT,
    Rotation.GUIDED_ROTATION: SenseRotation.FULL,
}


def to_session_config(config: GenerateConfig) -> SessionConfig:
    """Map generation parameters onto the validator's session vocabulary."""
    return SessionConfig(
        practice_mode=PracticeMode.GUIDED,
        body_state=BodyState.MOVING if config.posture is Posture.MOVING else BodyState.STILL,
        eye_state=EyeState.CLOSED if config.gaze is Gaze.CLOSED else EyeState.OPEN,
        primary_sense=PrimarySense(config.primary_sense.value),
        duration_minutes=config.duration_minutes,
        labeling_mode=_LABELING_MODES[config.labeling],
        silence_profile=_SILENCE_PROFILES[config.silence],
        normalization_frequency=_NORMALIZATION_FREQUENCIES[config.normalization],
        closing_style=_CLOSING_STYLES[config.closing],
        sense_rotation=_SENSE_ROTATIONS[config.rotation],
        language=config.language,
    )
