"""Pydantic models for API request/response contracts."""
from .requests import (
    DEFAULT_TTS_NEWLINE_PAUSE_SECONDS,
    GenerateRequest,
    TtsPayload,
    VoicePreviewPayload,
    parse_generate_request,
)
from .responses import (
    GenerateMetadata,
    GenerateResponse,
    HealthResponse,
    ScenarioItem,
    ScenarioListResponse,
    VersionResponse,
)
