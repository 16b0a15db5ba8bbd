"""Shared fixtures -- rule configs, session configs, mock LLM, WAV payloads."""

import json
import os
from unittest.mock import AsyncMock

import pytest

from pq_reps.llm import LLMResponse, TokenUsage
from pq_reps.services.wav import WavFormat, build_wav
from pq_reps.validation import SessionConfig, parse_rule_config

# The API module builds an app at import time; keep that app off real config.
os.environ.pop("RULES_PATH", None)


TEST_RULES = {
    "disallowedPreambles": ["here is", "sure,"],
    "trademarks": ["Positive Intelligence"],
    "disallowedKeywords": {"medical": ["diagnose", "cure"]},
    "openingDurationPhrases": ["for the next"],
    "openingVerbs": ["sit", "feel", "close"],
    "senseKeywords": {
        "touch": ["contact", "pressure", "weight", "texture"],
        "hearing": ["sound", "hear"],
        "sight": ["see", "color"],
        "breath": ["breath", "inhale"],
    },
    "disallowedSenseKeywords": {
        "touch": ["sound", "color"],
        "hearing": ["color"],
    },
    "normalizationKeywords": ["that's normal"],
    "driftKeywords": ["drifts"],
    "returnKeywords": ["return"],
    "silenceCuePhrases": ["stay with"],
    "reentryPhrases": ["now,"],
    "closeEyesPhrases": ["close your eyes"],
    "openEyesPhrases": ["open your eyes"],
    "closingDisallowedPhrases": ["well done"],
    "acceptableFinalLines": ["That's it."],
    "verbList": ["feel", "notice", "sense"],
    "noticeDominanceThreshold": 0.5,
    "closingMaxSentences": 3,
}

# Passes every rule in TEST_RULES for the default session below.
COMPLIANT_SCRIPT = "\n".join([
    "Sit comfortably and close your eyes. Feel the contact where your body meets the chair.",
    "Feel the weight of your hands resting.",
    "[pause:2]",
    "If your mind drifts, that's normal. Gently return to the pressure under you.",
    "Sense the texture of your clothing.",
    "",
    "You can open your eyes.",
    "That's it.",
])

DEFAULT_SESSION = {
    "practiceMode": "guided",
    "bodyState": "still",
    "eyeState": "closed",
    "primarySense": "touch",
    "durationMinutes": 2,
    "labelingMode": "none",
    "silenceProfile": "none",
    "normalizationFrequency": "once",
    "closingStyle": "stop",
}


@pytest.fixture
def rules():
    return parse_rule_config(TEST_RULES)


@pytest.fixture
def make_session():
    """Build a SessionConfig from the default touch session plus camelCase overrides."""

    def _make(**overrides) -> SessionConfig:
        return SessionConfig.model_validate({**DEFAULT_SESSION, **overrides})

    return _make


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def compliant_script():
    return COMPLIANT_SCRIPT


@pytest.fixture
def mock_llm():
    """Mock LLM client that returns a fixed script without API calls."""
    client = AsyncMock()
    client.call.return_value = LLMResponse(
        content=COMPLIANT_SCRIPT,
        usage=TokenUsage(input_tokens=100, output_tokens=50),
        model="mock-model",
    )
    client.model = "mock-model"
    return client


@pytest.fixture
def wav_format():
    # 100 Hz mono 16-bit: one second of silence is 200 bytes.
    return WavFormat(channels=1, sample_rate=100, bits_per_sample=16)


@pytest.fixture
def make_wav(wav_format):
    """WAV bytes whose PCM data is `data` (default: 4 frames of 0x01)."""

    def _make(data: bytes = b"\x01\x00" * 4, fmt: WavFormat | None = None) -> bytes:
        return build_wav(fmt or wav_format, data)

    return _make


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(TEST_RULES), encoding="utf-8")
    return path
