"""
Speech API -- synthesize an already generated script.

  POST /api/tts          -- whole WAV file
  POST /api/tts  (X-TTS-Streaming: 1) -- chunked WAV, header first

Script limits are checked before any audio is requested, so oversize scripts
fail with 400 script_too_large even in streaming mode.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response, StreamingResponse
from pydantic import ValidationError as PydanticValidationError

from ...i18n import resolve_locale_from_payload
from ...llm import MissingApiKeyError
from ...services import TtsError, TtsRequest
from ..dependencies import get_synthesizer
from ..errors import ApiError, read_json_body, service_error
from ..middleware.rate_limit import check_rate_limit
from ..models.requests import DEFAULT_TTS_NEWLINE_PAUSE_SECONDS, TtsPayload
from .generate import download_filename

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/tts", dependencies=[Depends(check_rate_limit)])
async def tts(request: Request) -> Response:
    payload = await read_json_body(request)
    locale = resolve_locale_from_payload(payload)

    try:
        body = TtsPayload.model_validate(payload)
    except PydanticValidationError:
        raise ApiError(400, "invalid_tts_payload", locale=locale) from None

    pause = body.tts_newline_pause_seconds
    tts_request = TtsRequest(
        script=body.script,
        voice=body.voice,
        language=body.language,
        newline_pause_seconds=DEFAULT_TTS_NEWLINE_PAUSE_SECONDS if pause is None else pause,
    )
    streaming = request.headers.get("x-tts-streaming") == "1"

    logger.info("[TTS] AI-generated audio notice: this response contains AI-generated speech")
    try:
        synthesizer = get_synthesizer(request)
        if streaming:
            result = await synthesizer.stream(tts_request)
        else:
            result = await synthesizer.synthesize(tts_request)
    except (MissingApiKeyError, TtsError) as e:
        raise service_error(e, locale) from e

    headers = {"Content-Disposition": f'attachment; filename="{download_filename(result.voice)}"'}
    if streaming:
        return StreamingResponse(result.stream, media_type=result.content_type, headers=headers)
    return Response(content=result.audio, media_type=result.content_type, headers=headers)
