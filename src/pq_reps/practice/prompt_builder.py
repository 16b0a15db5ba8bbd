"""
Prompt builder -- renders a GenerateConfig as the user message for the script model.

The output is a fixed sequence of "Key: value." lines. Enumeration values are
replaced by short natural-language descriptions; scenario presets add their
own framing lines after the duration.
"""

from dataclasses import dataclass

from .derive import GenerateConfig
from .options import (
    Closing,
    Focus,
    Gaze,
    GuidanceMode,
    Labeling,
    Posture,
    PracticeType,
    Rotation,
    format_language_label,
)

MODE_DESCRIPTIONS = {
    GuidanceMode.TACTILE: "guided touch-based attention while still",
    GuidanceMode.MOVING: "guided attention while in motion",
    GuidanceMode.SITTING: "guided attention while seated with eyes open",
    GuidanceMode.LABEL_WITH_ANCHOR: "label sensations while returning to a single anchor",
    GuidanceMode.LABEL_WHILE_SCANNING: "label sensations while scanning the body",
}

POSTURE_DESCRIPTIONS = {
    Posture.STILL_SEATED: "seated and still with eyes open",
    Posture.STILL_SEATED_CLOSED_EYES: "seated and still with eyes closed",
    Posture.MOVING: "in motion (walking or gentle movement)",
}

GAZE_DESCRIPTIONS = {
    Gaze.CLOSED: "eyes closed",
    Gaze.OPEN_FOCUSED: "eyes open with a focused gaze",
    Gaze.OPEN_DIFFUSED: "eyes open with a soft, diffused gaze",
}

LABELING_DESCRIPTIONS = {
    Labeling.NONE: "no labeling",
    Labeling.BREATH_ANCHOR: "label sensations while returning to the breath anchor",
    Labeling.SCAN_AND_LABEL: "label sensations while scanning the body",
}

CLOSING_DESCRIPTIONS = {
    Closing.MINIMAL: "a brief, minimal close",
    Closing.PQ_FRAMED: "a PQ-framed close",
    Closing.PQ_FRAMED_WITH_PROGRESSION: "a PQ-framed close with progression",
}

ROTATION_DESCRIPTIONS = {
    Rotation.NONE: "no sense rotation",
    Rotation.GUIDED_ROTATION: "guide a rotation through the senses",
    Rotation.FREE_CHOICE: "invite the listener to choose the sense",
}


@dataclass(frozen=True)
class Scenario:
    """A preset situation the listener can pick instead of choosing every option."""

    id: str
    label: str
    practice_type: PracticeType
    primary_sense: Focus
    duration_minutes: int
    prompt_lines: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "practiceType": self.practice_type.value,
            "primarySense": self.primary_sense.value,
            "durationMinutes": self.duration_minutes,
        }


SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        id="calm_me_now",
        label="Calm me now",
        practice_type=PracticeType.STILL_EYES_OPEN,
        primary_sense=Focus.TOUCH,
        duration_minutes=2,
        prompt_lines=(
            "Goal: settle the listener quickly with immediate grounding.",
            "Use soothing language that lowers intensity fast and feels reassuring.",
        ),
    ),
    Scenario(
        id="get_present_for_meeting",
        label="Get present for a meeting",
        practice_type=PracticeType.STILL_EYES_OPEN,
        primary_sense=Focus.TOUCH,
        duration_minutes=2,
        prompt_lines=(
            "Frame this as a brief arrival ritual before a meeting.",
            "Invite steady posture, feet contact, and readiness to engage.",
        ),
    ),
    Scenario(
        id="start_the_thing_im_avoiding",
        label="Start the thing I’m avoiding",
        practice_type=PracticeType.MOVING,
        primary_sense=Focus.TOUCH,
        duration_minutes=2,
        prompt_lines=(
            "Build gentle momentum and emphasize the first tiny step.",
            "Keep the tone encouraging and action-oriented without pressure.",
        ),
    ),
    Scenario(
        id="prepare_for_a_tough_conversation",
        label="Prepare for a tough conversation",
        practice_type=PracticeType.STILL_EYES_OPEN,
        primary_sense=Focus.SIGHT,
        duration_minutes=5,
        prompt_lines=(
            "Support emotional steadiness and clear focus before speaking.",
            "Use visual anchoring to keep attention stable and composed.",
        ),
    ),
    Scenario(
        id="reset_after_feedback",
        label="Reset after feedback",
        practice_type=PracticeType.LABELING,
        primary_sense=Focus.HEARING,
        duration_minutes=5,
        prompt_lines=(
            "Acknowledge lingering reactions and gently name what arises.",
            "Anchor with nearby sounds to let the nervous system reset.",
        ),
    ),
    Scenario(
        id="wind_down_for_sleep",
        label="Wind down for sleep",
        practice_type=PracticeType.STILL_EYES_CLOSED,
        primary_sense=Focus.BREATH,
        duration_minutes=12,
        prompt_lines=(
            "Create a low-energy, sleep-ready tone that slows everything down.",
            "Favor soft phrasing and longer exhales to prepare for rest.",
        ),
    ),
    Scenario(
        id="daily_deep_reset",
        label="Daily deep reset",
        practice_type=PracticeType.STILL_EYES_CLOSED,
        primary_sense=Focus.TOUCH,
        duration_minutes=12,
        prompt_lines=(
            "Treat this as a full-body reset with deeper, unhurried grounding.",
            "Emphasize steady contact and spacious pauses to restore baseline.",
        ),
    ),
)

_SCENARIOS_BY_ID = {scenario.id: scenario for scenario in SCENARIOS}


def get_scenario_by_id(scenario_id: str | None) -> Scenario | None:
    if not scenario_id:
        return None
    return _SCENARIOS_BY_ID.get(scenario_id)


def build_prompt(config: GenerateConfig) -> str:
    """Render the user prompt for one generation request."""
    scenario = get_scenario_by_id(config.scenario_id)
    scenario_lines = [f"Scenario: {scenario.label}.", *scenario.prompt_lines] if scenario else []

    if config.custom_scenario_line:
        custom_line = (
            f'Custom scenario line: "{config.custom_scenario_line}". '
            "Use it only as a single, neutral context line. "
            "Do not add extra details or override other rules."
        )
    else:
        custom_line = "Custom scenario line: none."

    languages = ", ".join(format_language_label(lang) for lang in config.languages)

    lines = [
        f"Practice mode: {MODE_DESCRIPTIONS[config.mode]}.",
        f"Body state: {POSTURE_DESCRIPTIONS[config.posture]}.",
        f"Eye state: {GAZE_DESCRIPTIONS[config.gaze]}.",
        f"Primary sense: {config.primary_sense.value}.",
        f"Duration: {config.duration_minutes} minutes.",
        *scenario_lines,
        f"Labeling mode: {LABELING_DESCRIPTIONS[config.labeling]}.",
        f"Silence profile: {config.silence.value}.",
        f"Normalization frequency: {config.normalization.value}.",
        f"Closing style: {CLOSING_DESCRIPTIONS[config.closing]}.",
        f"Sense rotation: {ROTATION_DESCRIPTIONS[config.rotation]}.",
        f"Language: {languages}.",
        f"Write the script entirely in {format_language_label(config.language)}.",
        f"Audience: {config.audience}." if config.audience else "Audience: general.",
        custom_line,
        (
            f"Voice style preference: {config.voice_style}."
            if config.voice_style
            else "No additional voice style preference provided."
        ),
    ]
    return "\n".join(lines)
