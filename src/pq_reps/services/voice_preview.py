"""Voice previews -- short fixed samples per language, cached on disk after first synthesis."""

import hashlib
import logging
from pathlib import Path

from ..llm import MissingApiKeyError
from .tts import SpeechSynthesizer, TtsError, TtsRequest

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path(".cache") / "voice-previews"

PREVIEW_TEXT_BY_LANGUAGE = {
    "en": "The sun rises in the east, and sets in the west.\n\nThe colours of the sky fade with the setting sun.",
    "es": "El sol sale por el este y se pone por el oeste.\n\nLos colores del cielo se desvanecen con la puesta de sol.",
    "fr": "Le soleil se lève à l'est et se couche à l'ouest.\n\nLes couleurs du ciel s'estompent avec le soleil couchant.",
    "de": "Die Sonne geht im Osten auf und im Westen unter.\n\nDie Farben des Himmels verblassen mit der untergehenden Sonne.",
}


class VoicePreviewError(RuntimeError):
    code = "voice_preview_failure"


def get_voice_preview_script(language: str | None) -> str:
    return PREVIEW_TEXT_BY_LANGUAGE.get(language or "", PREVIEW_TEXT_BY_LANGUAGE["en"])


def preview_cache_path(cache_dir: Path, language: str, voice: str, script: str) -> Path:
    key = hashlib.sha256(f"{language}|{voice}|{script}".encode("utf-8")).hexdigest()
    return cache_dir / f"{key}.wav"


async def get_voice_preview(
    language: str = "en",
    voice: str = "alloy",
    cache_dir: Path = DEFAULT_CACHE_DIR,
    synthesizer: SpeechSynthesizer | None = None,
) -> bytes:
    """Return preview audio, synthesizing and caching it on first request."""
    script = get_voice_preview_script(language)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise VoicePreviewError(str(e)) from e
    cache_path = preview_cache_path(cache_dir, language, voice, script)

    if cache_path.exists():
        logger.debug(f"[TTS] Voice preview cache hit ({cache_path.name})")
        return cache_path.read_bytes()

    try:
        synthesizer = synthesizer or SpeechSynthesizer()
        result = await synthesizer.synthesize(TtsRequest(script=script, language=language, voice=voice))
        # A partial file must never become a cache hit.
        tmp_path = cache_path.with_suffix(".wav.tmp")
        tmp_path.write_bytes(result.audio)
        tmp_path.replace(cache_path)
    except (MissingApiKeyError, TtsError, OSError) as e:
        raise VoicePreviewError(str(e)) from e
    logger.info(f"[TTS] Cached voice preview {language}/{voice} ({len(result.audio)} bytes)")
    return result.audio
