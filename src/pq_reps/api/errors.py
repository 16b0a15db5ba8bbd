"""
API error envelope.

Every failure leaves the API as

    {"error": {"code": "<code>", "message": "<localized>", "details": {...}}}

`details` is omitted when empty. Messages come from the i18n catalogs
("errors.<code>") in the caller's locale.
"""

import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..i18n import DEFAULT_LOCALE, translate
from ..llm import MissingApiKeyError
from ..security import ValidationError
from ..services import ScriptGenerationError, TtsError, TtsScriptTooLargeError, VoicePreviewError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error with an HTTP status and a translatable code."""

    def __init__(
        self,
        status_code: int,
        code: str,
        details: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        locale: str = DEFAULT_LOCALE,
    ):
        super().__init__(code)
        self.status_code = status_code
        self.code = code
        self.details = details
        self.params = params or {}
        self.headers = headers
        self.locale = locale

    @classmethod
    def from_validation(cls, exc: ValidationError, locale: str = DEFAULT_LOCALE) -> "ApiError":
        return cls(400, exc.code, details=exc.details, params=exc.params, locale=locale)


def error_body(
    locale: str,
    code: str,
    details: dict[str, Any] | None = None,
    **params: Any,
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code,
        "message": translate(locale, f"errors.{code}", **params),
    }
    if details:
        error["details"] = details
    return {"error": error}


def error_response(exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.locale, exc.code, exc.details, **exc.params),
        headers=exc.headers,
    )


def service_error(exc: Exception, locale: str) -> ApiError:
    """Map a service-layer failure onto its API error."""
    if isinstance(exc, TtsScriptTooLargeError):
        return ApiError(400, "script_too_large", details=exc.details, locale=locale)
    if isinstance(exc, MissingApiKeyError):
        return ApiError(500, "missing_openai_key", locale=locale)
    if isinstance(exc, (ScriptGenerationError, TtsError, VoicePreviewError)):
        return ApiError(500, exc.code, details={"error": str(exc)}, locale=locale)
    logger.error(f"[Errors] Unmapped failure: {type(exc).__name__}: {exc}")
    return ApiError(500, "unknown", locale=locale)


async def read_json_body(request: Request, locale: str = DEFAULT_LOCALE) -> Any:
    """Decode the request body. An empty body reads as {}."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ApiError(400, "invalid_json", details={"error": str(e)}, locale=locale) from None


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[Errors] {request.method} {request.url.path} -> {exc.code}")
    return error_response(exc)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        code = "not_found"
    elif exc.status_code == 405:
        code = "method_not_allowed"
    else:
        code = "unknown"
    return error_response(ApiError(exc.status_code, code, headers=getattr(exc, "headers", None)))


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [str(e.get("msg", "")) for e in exc.errors()]
    return error_response(ApiError(400, "invalid_payload", details={"errors": messages}))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
