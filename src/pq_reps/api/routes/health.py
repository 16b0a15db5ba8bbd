"""
Health and version endpoints.

  GET /health   -- Liveness probe (always returns 200 if process is alive)
  GET /version  -- Installed package version
"""

import time

from fastapi import APIRouter, Request

from ... import __version__
from ..models.responses import HealthResponse, VersionResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, response_model_by_alias=True)
async def liveness(request: Request) -> HealthResponse:
    """Liveness probe -- returns 200 if the process is running."""
    start_time = getattr(request.app.state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        uptime_seconds=round(time.time() - start_time, 1),
        rules_loaded=getattr(request.app.state, "rule_config", None) is not None,
    )


@router.get("/version", response_model=VersionResponse)
async def version() -> VersionResponse:
    return VersionResponse(version=__version__)
