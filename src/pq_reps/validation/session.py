"""
Session configuration -- the practice parameters a script was generated for.

Values arrive already validated by the caller. Configuration-dependent rules
read these enumerations; a missing SessionConfig skips those rules entirely.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PracticeMode(str, Enum):
    GUIDED = "guided"
    SELF_LED = "self-led"
    CHECK_IN = "check-in"


class BodyState(str, Enum):
    STILL = "still"
    MOVING = "moving"


class EyeState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class PrimarySense(str, Enum):
    TOUCH = "touch"
    HEARING = "hearing"
    SIGHT = "sight"
    BREATH = "breath"


class LabelingMode(str, Enum):
    NONE = "none"
    LIGHT = "light"
    EXPLICIT = "explicit"


class SilenceProfile(str, Enum):
    NONE = "none"
    LIGHT = "light"
    DEEP = "deep"


class NormalizationFrequency(str, Enum):
    NONE = "none"
    ONCE = "once"
    REPEAT = "repeat"


class ClosingStyle(str, Enum):
    STOP = "stop"
    SOFT = "soft"
    FORMAL = "formal"


class SenseRotation(str, Enum):
    NONE = "none"
    LIGHT = "light"
    FULL = "full"


class SessionConfig(BaseModel):
    """Full set of session parameters. Partial configurations are not supported."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    practice_mode: PracticeMode
    body_state: BodyState
    eye_state: EyeState
    primary_sense: PrimarySense
    duration_minutes: int
    labeling_mode: LabelingMode
    silence_profile: SilenceProfile
    normalization_frequency: NormalizationFrequency
    closing_style: ClosingStyle
    # Prompt-only fields; no rule reads them.
    sense_rotation: SenseRotation = SenseRotation.NONE
    language: str = "en"
