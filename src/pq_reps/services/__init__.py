"""External services: script generation, speech synthesis, voice previews."""

from .script import (
    SCRIPT_SYSTEM_PROMPT,
    ScriptGenerationError,
    ScriptResponse,
    generate_script,
)
from .tts import (
    MAX_TTS_CHARS,
    MAX_TTS_SEGMENTS,
    SpeechSynthesizer,
    TtsError,
    TtsRequest,
    TtsResponse,
    TtsScriptTooLargeError,
    TtsStream,
    insert_newline_pauses,
    synthesize_speech,
    synthesize_speech_stream,
    tokenize_script,
)
from .voice_preview import VoicePreviewError, get_voice_preview, get_voice_preview_script
