"""
Generate API -- one practice script, as text, audio, or both.

  POST /api/generate

The output mode comes from the payload's `outputMode`; without it, callers
that accept application/json get text and everyone else gets audio.

When RULES_PATH is configured, each script is run through the validator and
any findings are logged and echoed in metadata.validation. Findings never
block the response.
"""

import base64
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from ...i18n import resolve_locale_from_payload
from ...llm import MissingApiKeyError
from ...practice import GenerateConfig, OutputMode, build_prompt, to_session_config
from ...security import ValidationError
from ...services import (
    SCRIPT_SYSTEM_PROMPT,
    ScriptGenerationError,
    TtsError,
    TtsRequest,
    generate_script,
    insert_newline_pauses,
)
from ...services.tts import TTS_SYSTEM_PROMPT, build_tts_payload, resolve_voice
from ...validation import ValidationResult, validate_script
from ..dependencies import get_llm_client, get_synthesizer
from ..errors import ApiError, read_json_body, service_error
from ..middleware.rate_limit import check_rate_limit
from ..models.requests import parse_generate_request
from ..models.responses import GenerateMetadata, GenerateResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def download_filename(voice: str, now: datetime | None = None, extension: str = "wav") -> str:
    now = now or datetime.now()
    return f"pq-reps_{voice}_{now.strftime('%Y%m%d-%H%M')}.{extension}"


def _check_script(request: Request, config: GenerateConfig, script: str) -> ValidationResult | None:
    rules = getattr(request.app.state, "rule_config", None)
    if rules is None:
        return None

    result = validate_script(script, to_session_config(config), rules)
    if not result.passed:
        logger.warning(
            f"[Generate] Script drift: {result.fail_count} fail / {result.warn_count} warn "
            f"({', '.join(result.rule_ids)})"
        )
    elif result.failures:
        logger.info(f"[Generate] Script warnings: {', '.join(result.rule_ids)}")
    return result


def _tts_debug(config: GenerateConfig, prompt: str, script: str) -> dict:
    voice = resolve_voice(config.voice_style, config.language)
    payload = build_tts_payload(voice, insert_newline_pauses(script, config.tts_newline_pause_seconds))
    return {
        **payload,
        "voiceStylePreference": config.voice_style,
        "scriptSystemPrompt": SCRIPT_SYSTEM_PROMPT,
        "scriptUserPrompt": prompt,
        "ttsSystemPrompt": TTS_SYSTEM_PROMPT,
    }


@router.post("/generate", dependencies=[Depends(check_rate_limit)])
async def generate(request: Request) -> Response:
    """Generate a script and return it in the requested output mode."""
    payload = await read_json_body(request)
    locale = resolve_locale_from_payload(payload)

    try:
        parsed = parse_generate_request(payload)
    except ValidationError as e:
        raise ApiError.from_validation(e, locale) from None

    config = parsed.config
    prompt = build_prompt(config)
    output_mode = parsed.output_mode
    if output_mode is None:
        accepts_json = "application/json" in request.headers.get("accept", "")
        output_mode = OutputMode.TEXT if accepts_json else OutputMode.AUDIO

    try:
        generated = await generate_script(prompt, get_llm_client(request))
        script = generated.script
        validation = _check_script(request, config, script)

        extra = {}
        if validation is not None:
            extra["validation"] = validation.to_dict()
        if parsed.debug_tts_prompt:
            extra["tts_prompt"] = _tts_debug(config, prompt, script)

        if output_mode is OutputMode.TEXT:
            body = GenerateResponse(
                script=script,
                metadata=GenerateMetadata.from_config(config, prompt, **extra),
            )
            return JSONResponse(body.model_dump(by_alias=True, exclude_none=True))

        logger.info("[Generate] AI-generated audio notice: this response contains AI-generated speech")
        tts = await get_synthesizer(request).synthesize(
            TtsRequest(
                script=script,
                voice=config.voice_style,
                language=config.language,
                newline_pause_seconds=config.tts_newline_pause_seconds,
            )
        )
    except (MissingApiKeyError, ScriptGenerationError, TtsError) as e:
        raise service_error(e, locale) from e

    if output_mode is OutputMode.TEXT_AUDIO:
        body = GenerateResponse(
            script=script,
            metadata=GenerateMetadata.from_config(
                config, prompt, tts_provider=tts.provider, voice=tts.voice, **extra
            ),
            audio_base64=base64.b64encode(tts.audio).decode("ascii"),
            audio_content_type=tts.content_type,
        )
        return JSONResponse(body.model_dump(by_alias=True, exclude_none=True))

    return Response(
        content=tts.audio,
        media_type=tts.content_type,
        headers={"Content-Disposition": f'attachment; filename="{download_filename(tts.voice)}"'},
    )
