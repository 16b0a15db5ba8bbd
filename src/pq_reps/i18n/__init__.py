"""
Localized messages for API errors and the static UI.

Catalogs live in locales/<locale>.yaml as nested mappings and are addressed
by dotted keys ("errors.not_found"). Lookups fall back to English, then to
the key itself.
"""

import logging
from functools import lru_cache
from importlib import resources
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"
SUPPORTED_LOCALES = ("en", "es", "fr", "de")


def _flatten(tree: dict[str, Any], prefix: str = "") -> dict[str, str]:
    flat = {}
    for key, value in tree.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = str(value)
    return flat


@lru_cache(maxsize=None)
def load_messages(locale: str) -> dict[str, str]:
    resource = resources.files(__package__).joinpath("locales", f"{locale}.yaml")
    try:
        data = yaml.safe_load(resource.read_text(encoding="utf-8")) or {}
    except FileNotFoundError:
        logger.warning(f"[i18n] No catalog for locale '{locale}'")
        return {}
    return _flatten(data)


def resolve_locale(value: str | None) -> str:
    """Map "es-MX" / "FR" / None onto a supported base locale."""
    if not value or not isinstance(value, str):
        return DEFAULT_LOCALE
    base = value.lower().split("-")[0]
    return base if base in SUPPORTED_LOCALES else DEFAULT_LOCALE


def resolve_locale_from_payload(payload: Any) -> str:
    """Pick the locale from `locale`, then `language`, then the first of `languages`."""
    if not isinstance(payload, dict):
        return DEFAULT_LOCALE
    if payload.get("locale"):
        return resolve_locale(payload["locale"])
    if payload.get("language"):
        return resolve_locale(payload["language"])
    languages = payload.get("languages")
    if isinstance(languages, list) and languages:
        return resolve_locale(languages[0])
    return DEFAULT_LOCALE


def translate(locale: str, key: str, **params: Any) -> str:
    template = load_messages(locale).get(key) or load_messages(DEFAULT_LOCALE).get(key) or key
    for name, value in params.items():
        template = template.replace(f"{{{name}}}", str(value))
    return template


def format_minutes(locale: str, count: int) -> str:
    if locale == "de":
        suffix = "" if count == 1 else "n"
    else:
        suffix = "" if count == 1 else "s"
    return translate(locale, "form.duration.minutes", count=count, suffix=suffix)
