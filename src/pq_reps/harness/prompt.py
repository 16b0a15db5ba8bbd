"""User prompt for harness cases: the raw session parameters, one per line."""

from ..validation import SessionConfig


def build_user_prompt(inputs: SessionConfig) -> str:
    return "\n".join([
        "Generate a mental fitness script using the following inputs.",
        f"Practice mode: {inputs.practice_mode.value}.",
        f"Body state: {inputs.body_state.value}.",
        f"Eye state: {inputs.eye_state.value}.",
        f"Primary sense: {inputs.primary_sense.value}.",
        f"Duration: {inputs.duration_minutes} minutes.",
        f"Labeling mode: {inputs.labeling_mode.value}.",
        f"Silence profile: {inputs.silence_profile.value}.",
        f"Normalization frequency: {inputs.normalization_frequency.value}.",
        f"Closing style: {inputs.closing_style.value}.",
        f"Sense rotation: {inputs.sense_rotation.value}.",
        f"Language: {inputs.language}.",
        "Return only the script text with no extra commentary.",
    ])
