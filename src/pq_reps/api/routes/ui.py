"""
Static UI.

  GET /           -- redirect to /en/ (query string preserved)
  GET /{locale}/  -- the single-page UI; the page reads its locale from the path
"""

from functools import lru_cache
from importlib import resources

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ...i18n import DEFAULT_LOCALE, SUPPORTED_LOCALES
from ..errors import ApiError

router = APIRouter(include_in_schema=False)


@lru_cache(maxsize=1)
def load_index_html() -> str:
    return resources.files("pq_reps.ui").joinpath("index.html").read_text(encoding="utf-8")


@router.get("/")
async def root(request: Request) -> RedirectResponse:
    query = f"?{request.url.query}" if request.url.query else ""
    return RedirectResponse(url=f"/{DEFAULT_LOCALE}/{query}", status_code=302)


@router.get("/{locale}")
@router.get("/{locale}/")
async def index(locale: str) -> HTMLResponse:
    if locale not in SUPPORTED_LOCALES:
        raise ApiError(404, "not_found")
    return HTMLResponse(load_index_html())
