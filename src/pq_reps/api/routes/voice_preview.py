"""
Voice preview API.

  POST /api/voice-preview  -- {"language"?, "voice"?} -> cached WAV sample
"""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError

from ...i18n import resolve_locale_from_payload
from ...services import VoicePreviewError, get_voice_preview
from ...services.voice_preview import DEFAULT_CACHE_DIR
from ..errors import ApiError, read_json_body, service_error
from ..middleware.rate_limit import check_rate_limit
from ..models.requests import VoicePreviewPayload

router = APIRouter()


@router.post("/voice-preview", dependencies=[Depends(check_rate_limit)])
async def voice_preview(request: Request) -> Response:
    payload = await read_json_body(request)
    locale = resolve_locale_from_payload(payload)

    try:
        body = VoicePreviewPayload.model_validate(payload)
    except PydanticValidationError:
        raise ApiError(400, "invalid_payload", locale=locale) from None

    cache_dir: Path = getattr(request.app.state, "voice_preview_cache_dir", DEFAULT_CACHE_DIR)
    try:
        audio = await get_voice_preview(
            language=body.language or "en",
            voice=body.voice or "alloy",
            cache_dir=cache_dir,
            synthesizer=getattr(request.app.state, "synthesizer", None),
        )
    except VoicePreviewError as e:
        raise service_error(e, locale) from e

    return Response(
        content=audio,
        media_type="audio/wav",
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
