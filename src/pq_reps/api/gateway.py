"""
API Gateway -- FastAPI application factory.

Creates the FastAPI app with all routes, middleware, and dependencies.
This is the entrypoint for uvicorn:

    uvicorn pq_reps.api.gateway:create_app --factory --host 0.0.0.0 --port 3000

Or for development:

    uvicorn pq_reps.api.gateway:app --reload

Environment is read from .env.local, then .env (existing variables win).

Security:
  - CORS restricted to configured origins (default: localhost only)
  - Token-bucket rate limiting on /api routes
  - All external input validated at boundary
"""

import logging
import os
import time
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..validation import RuleConfig, RuleConfigError, load_rule_config
from .errors import register_exception_handlers
from .middleware.rate_limit import TokenBucketLimiter
from .routes import generate, health, scenarios, tts, ui, voice_preview

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
]


def _get_cors_origins() -> list[str]:
    """Load CORS origins from environment or use safe defaults."""
    origins_env = os.environ.get("CORS_ORIGINS", "")
    if origins_env.strip():
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    return DEFAULT_CORS_ORIGINS


def _configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _load_rules() -> RuleConfig | None:
    """Load RULES_PATH if set. A bad file disables validation instead of failing startup."""
    rules_path = os.environ.get("RULES_PATH", "").strip()
    if not rules_path:
        return None
    try:
        rules = load_rule_config(rules_path)
    except RuleConfigError as e:
        logger.warning(f"[Gateway] Rule config not loaded (non-fatal): {e}")
        return None
    logger.info(f"[Gateway] Script validation enabled with rules from {rules_path}")
    return rules


def create_app(
    rule_config: RuleConfig | None = None,
    rate_limiter: TokenBucketLimiter | None = None,
    voice_preview_cache_dir: Path | None = None,
) -> FastAPI:
    """
    Application factory -- creates and configures the FastAPI app.

    Args:
        rule_config: Rules for post-generation validation (default: RULES_PATH).
        rate_limiter: Limiter for /api routes (default: from RATE_LIMIT_* env).
        voice_preview_cache_dir: Where preview audio is cached.
    """
    load_dotenv(".env.local")
    load_dotenv()
    _configure_logging()

    application = FastAPI(
        title="PQ Reps API",
        description="Guided practice script generation, speech synthesis, and script validation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=_get_cors_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Accept", "X-TTS-Streaming"],
    )
    register_exception_handlers(application)

    application.state.start_time = time.time()
    application.state.rule_config = rule_config if rule_config is not None else _load_rules()
    application.state.rate_limiter = rate_limiter or TokenBucketLimiter.from_env()
    application.state.llm_client = None
    application.state.synthesizer = None
    if voice_preview_cache_dir is not None:
        application.state.voice_preview_cache_dir = voice_preview_cache_dir

    application.include_router(health.router, tags=["Health"])
    application.include_router(generate.router, prefix="/api", tags=["Generate"])
    application.include_router(tts.router, prefix="/api", tags=["Speech"])
    application.include_router(voice_preview.router, prefix="/api", tags=["Speech"])
    application.include_router(scenarios.router, prefix="/api", tags=["Scenarios"])
    application.include_router(ui.router)

    logger.info("[Gateway] API gateway initialized")
    return application


app = create_app()


def main() -> None:
    """Run the API with uvicorn on $PORT (default 3000)."""
    import uvicorn

    port = int(os.environ.get("PORT", "3000"))
    uvicorn.run("pq_reps.api.gateway:create_app", factory=True, host="0.0.0.0", port=port)
