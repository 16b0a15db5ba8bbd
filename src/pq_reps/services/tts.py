"""
Speech synthesis -- turns a script with pause markers into one WAV file.

Pipeline:
  1. insert_newline_pauses(): each newline becomes an explicit [pause:N]
  2. tokenize_script(): ordered text / pause segments
  3. enforce segment and character limits
  4. each text segment -> POST /v1/audio/speech (WAV); pauses -> zero PCM
  5. splice everything under one header (or stream it, header first)

Every spoken segment must come back in the same PCM format as the first.
"""

import contextlib
import hashlib
import logging
import os
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Union

import httpx

from ..llm import MissingApiKeyError
from .wav import (
    STREAMING_DATA_SIZE,
    WavFormat,
    WavFormatError,
    build_wav,
    build_wav_header,
    parse_wav,
    silence,
)

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
TTS_MODEL = "gpt-4o-mini-tts"
DEFAULT_TIMEOUT_MS = 60_000
MAX_TTS_SEGMENTS = 32
MAX_TTS_CHARS = 4000

DEFAULT_VOICE = "alloy"
SUPPORTED_VOICES = frozenset({"alloy", "ash", "nova", "onyx"})
LANGUAGE_VOICE_MAP = {
    "en": "alloy",
    "es": "nova",
    "fr": "nova",
    "de": "alloy",
}

TTS_SYSTEM_PROMPT = "\n".join([
    "You are delivering a Positive Intelligence (PQ) Reps script as a trained PQ Coach.",
    "The goal is to sound like Shirzad Chamine's instructional style: calm, grounded, and practical.",
    "Delivery & Expression:",
    "- Use a neutral accent appropriate to the selected language/region; clear, standard pronunciation",
    "- Very narrow and steady emotional range; calm, reassuring, emotionally neutral",
    "- Gentle, mostly flat intonation with slight downward inflection at sentence ends",
    "- Sound like a calm, experienced mindfulness teacher guiding a practical exercise",
    "- Slow, steady pace with natural pauses between phrases and instructions",
    "- Warm, composed, matter-of-fact delivery; avoid hype or sentimental softness",
    "- Do not whisper; keep a soft but fully voiced delivery",
])

PAUSE_MARKER_PATTERN = re.compile(r"\[pause:(\d+(?:\.\d+)?)\]", re.IGNORECASE)
NEWLINE_PATTERN = re.compile(r"\r?\n")


class TtsError(RuntimeError):
    """Raised when speech synthesis fails."""

    code = "tts_failure"


class TtsScriptTooLargeError(TtsError):
    """Raised before any network call when a script exceeds the synthesis limits."""

    code = "script_too_large"

    def __init__(self, segment_count: int, char_count: int,
                 max_segments: int = MAX_TTS_SEGMENTS, max_chars: int = MAX_TTS_CHARS):
        super().__init__(
            f"Script exceeds TTS limits (segments: {segment_count}/{max_segments}, "
            f"chars: {char_count}/{max_chars})."
        )
        self.segment_count = segment_count
        self.char_count = char_count
        self.max_segments = max_segments
        self.max_chars = max_chars

    @property
    def details(self) -> dict:
        return {
            "maxSegments": self.max_segments,
            "maxChars": self.max_chars,
            "segmentCount": self.segment_count,
            "charCount": self.char_count,
        }


# =============================================================================
# SCRIPT TOKENIZATION
# =============================================================================


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class PauseSegment:
    seconds: float


Segment = Union[TextSegment, PauseSegment]


def insert_newline_pauses(script: str, seconds: float | None) -> str:
    if not seconds or seconds <= 0:
        return script
    return NEWLINE_PATTERN.sub(f"\n[pause:{seconds:g}]\n", script)


def tokenize_script(script: str) -> list[Segment]:
    """Split on numeric pause markers; drop blank text and non-positive pauses."""
    segments: list[Segment] = []
    last_index = 0

    for match in PAUSE_MARKER_PATTERN.finditer(script):
        chunk = script[last_index:match.start()].strip()
        if chunk:
            segments.append(TextSegment(chunk))
        seconds = float(match.group(1))
        if seconds > 0:
            segments.append(PauseSegment(seconds))
        last_index = match.end()

    remaining = script[last_index:].strip()
    if remaining:
        segments.append(TextSegment(remaining))
    return segments


def count_text_chars(segments: list[Segment]) -> int:
    return sum(len(s.text) for s in segments if isinstance(s, TextSegment))


def resolve_voice(voice: str | None, language: str | None = None) -> str:
    if voice and voice in SUPPORTED_VOICES:
        return voice
    if voice:
        logger.warning(f"[TTS] Unsupported voice '{voice}' requested. Falling back to default voice.")
    return LANGUAGE_VOICE_MAP.get(language or "", DEFAULT_VOICE)


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================


@dataclass(frozen=True)
class TtsRequest:
    script: str
    voice: str | None = None
    language: str | None = None
    newline_pause_seconds: float | None = None


@dataclass(frozen=True)
class TtsResponse:
    audio: bytes
    voice: str
    input_script: str
    content_type: str = "audio/wav"
    provider: str = "openai"


@dataclass(frozen=True)
class TtsStream:
    stream: AsyncIterator[bytes]
    voice: str
    input_script: str
    content_type: str = "audio/wav"
    provider: str = "openai"


@dataclass(frozen=True)
class _PreparedScript:
    voice: str
    input_script: str
    segments: list[Segment]


def build_tts_payload(voice: str, text: str) -> dict:
    return {
        "model": TTS_MODEL,
        "voice": voice,
        "input": text,
        "instructions": TTS_SYSTEM_PROMPT,
        "response_format": "wav",
    }


def _get_timeout_seconds() -> float:
    try:
        value = int(os.environ.get("OPENAI_TIMEOUT_MS", ""))
    except ValueError:
        value = 0
    return (value if value > 0 else DEFAULT_TIMEOUT_MS) / 1000


# =============================================================================
# SYNTHESIZER
# =============================================================================


class SpeechSynthesizer:
    """
    OpenAI speech client that stitches segment audio together.

    Usage:
        synthesizer = SpeechSynthesizer()
        result = await synthesizer.synthesize(TtsRequest(script=text, language="en"))
        Path("out.wav").write_bytes(result.audio)

    Pass `http_client` to reuse a connection pool (or a mock transport in tests).
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = OPENAI_BASE_URL,
    ):
        self._api_key = api_key if api_key is not None else os.environ.get("OPENAI_API_KEY", "").strip()
        if not self._api_key:
            raise MissingApiKeyError()
        self._timeout = timeout if timeout is not None else _get_timeout_seconds()
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")

    def _session(self):
        if self._http_client is not None:
            return contextlib.nullcontext(self._http_client)
        return httpx.AsyncClient(timeout=self._timeout)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def synthesize_segment(self, client: httpx.AsyncClient, voice: str, text: str) -> bytes:
        """POST one text segment to the speech endpoint and return WAV bytes."""
        try:
            response = await client.post(
                f"{self._base_url}/audio/speech",
                json=build_tts_payload(voice, text),
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TtsError(f"OpenAI request timed out after {self._timeout * 1000:.0f} ms") from e
        except httpx.HTTPStatusError as e:
            raise TtsError(
                f"OpenAI TTS failed: {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise TtsError(f"OpenAI TTS request failed: {e}") from e
        return response.content

    def _prepare(self, request: TtsRequest) -> _PreparedScript:
        voice = resolve_voice(request.voice, request.language)
        input_script = insert_newline_pauses(request.script, request.newline_pause_seconds)
        script_hash = hashlib.sha256(input_script.encode("utf-8")).hexdigest()[:12]
        logger.info(
            f"[TTS] audio.speech model={TTS_MODEL} voice={voice} "
            f"script_chars={len(input_script)} script_hash={script_hash}"
        )

        segments = tokenize_script(input_script)
        if not segments:
            raise TtsError("Script is empty after parsing pause markers.")

        char_count = count_text_chars(segments)
        if len(segments) > MAX_TTS_SEGMENTS or char_count > MAX_TTS_CHARS:
            raise TtsScriptTooLargeError(segment_count=len(segments), char_count=char_count)

        return _PreparedScript(voice=voice, input_script=input_script, segments=segments)

    async def _render(self, prepared: _PreparedScript) -> AsyncIterator[tuple[WavFormat, bytes]]:
        """Yield (format, PCM piece) in script order, starting at the first spoken segment."""
        fmt: WavFormat | None = None
        pending_pause = 0.0

        async with self._session() as client:
            for segment in prepared.segments:
                if isinstance(segment, PauseSegment):
                    if fmt is None:
                        pending_pause += segment.seconds
                    else:
                        yield fmt, silence(segment.seconds, fmt)
                    continue

                raw = await self.synthesize_segment(client, prepared.voice, segment.text)
                try:
                    wav = parse_wav(raw)
                except WavFormatError as e:
                    raise TtsError(str(e)) from e

                if fmt is None:
                    fmt = wav.format
                    if pending_pause > 0:
                        yield fmt, silence(pending_pause, fmt)
                        pending_pause = 0.0
                elif wav.format != fmt:
                    raise TtsError("TTS returned inconsistent WAV formats for segments.")

                yield fmt, wav.data

        if fmt is None:
            raise TtsError("No spoken audio segments were generated.")

    async def _stream_wav(self, prepared: _PreparedScript) -> AsyncIterator[bytes]:
        header_sent = False
        async for fmt, piece in self._render(prepared):
            if not header_sent:
                yield build_wav_header(fmt, STREAMING_DATA_SIZE)
                header_sent = True
            yield piece
        logger.info(f"[TTS] Streamed {len(prepared.segments)} segments")

    async def synthesize(self, request: TtsRequest) -> TtsResponse:
        prepared = self._prepare(request)
        fmt: WavFormat | None = None
        chunks = []
        async for fmt, piece in self._render(prepared):
            chunks.append(piece)

        audio = build_wav(fmt, b"".join(chunks))
        logger.info(f"[TTS] Synthesized {len(prepared.segments)} segments ({len(audio)} bytes)")
        return TtsResponse(audio=audio, voice=prepared.voice, input_script=prepared.input_script)

    async def stream(self, request: TtsRequest) -> TtsStream:
        """Validate eagerly, then return a lazily synthesized byte stream."""
        prepared = self._prepare(request)
        return TtsStream(
            stream=self._stream_wav(prepared),
            voice=prepared.voice,
            input_script=prepared.input_script,
        )


async def synthesize_speech(
    request: TtsRequest, synthesizer: SpeechSynthesizer | None = None
) -> TtsResponse:
    synthesizer = synthesizer or SpeechSynthesizer()
    return await synthesizer.synthesize(request)


async def synthesize_speech_stream(
    request: TtsRequest, synthesizer: SpeechSynthesizer | None = None
) -> TtsStream:
    synthesizer = synthesizer or SpeechSynthesizer()
    return await synthesizer.stream(request)
