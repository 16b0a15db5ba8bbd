"""
Practice options -- the enumerations the web app and prompt builder speak.

These are richer than the validator's SessionConfig vocabulary (which only
distinguishes what the rules need). `to_session_config` in derive.py maps one
onto the other.
"""

from enum import Enum

SUPPORTED_LANGUAGES = ("en", "es", "fr", "de")
ALLOWED_DURATIONS = (1, 2, 5, 12)

LANGUAGE_LABELS = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
}


# =============================================================================
# REQUEST-FACING CHOICES
# =============================================================================


class PracticeType(str, Enum):
    STILL_EYES_CLOSED = "still_eyes_closed"
    STILL_EYES_OPEN = "still_eyes_open"
    MOVING = "moving"
    LABELING = "labeling"


class Focus(str, Enum):
    TOUCH = "touch"
    HEARING = "hearing"
    SIGHT = "sight"
    BREATH = "breath"


class VoiceGender(str, Enum):
    FEMALE = "female"
    MALE = "male"


class OutputMode(str, Enum):
    TEXT = "text"
    AUDIO = "audio"
    TEXT_AUDIO = "text-audio"


# =============================================================================
# DERIVED GENERATION PARAMETERS
# =============================================================================


class GuidanceMode(str, Enum):
    TACTILE = "tactile"
    MOVING = "moving"
    SITTING = "sitting"
    LABEL_WITH_ANCHOR = "label_with_anchor"
    LABEL_WHILE_SCANNING = "label_while_scanning"


class Posture(str, Enum):
    STILL_SEATED = "still_seated"
    STILL_SEATED_CLOSED_EYES = "still_seated_closed_eyes"
    MOVING = "moving"


class Gaze(str, Enum):
    CLOSED = "closed"
    OPEN_FOCUSED = "open_focused"
    OPEN_DIFFUSED = "open_diffused"


class Labeling(str, Enum):
    NONE = "none"
    BREATH_ANCHOR = "breath_anchor"
    SCAN_AND_LABEL = "scan_and_label"


class Silence(str, Enum):
    NONE = "none"
    SHORT_PAUSES = "short_pauses"
    EXTENDED_SILENCE = "extended_silence"


class Normalization(str, Enum):
    ONCE = "once"
    PERIODIC = "periodic"
    REPEATED = "repeated"


class Closing(str, Enum):
    MINIMAL = "minimal"
    PQ_FRAMED = "pq_framed"
    PQ_FRAMED_WITH_PROGRESSION = "pq_framed_with_progression"


class Rotation(str, Enum):
    NONE = "none"
    GUIDED_ROTATION = "guided_rotation"
    FREE_CHOICE = "free_choice"


def format_language_label(language: str) -> str:
    return f"{LANGUAGE_LABELS.get(language, language)} ({language})"
