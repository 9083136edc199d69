"""Localized message lookup backed by JSON catalogs in app/locales."""

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from app.core.config import SUPPORTED_LOCALES, settings

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parents[1] / "locales"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@lru_cache
def load_catalog(locale: str) -> dict[str, Any]:
    """Load one locale's catalog; a missing or broken file yields an empty catalog."""
    path = LOCALES_DIR / f"{locale}.json"
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load locale catalog %s: %s", path, e)
        return {}


def _lookup(catalog: dict[str, Any], key: str) -> str | None:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def normalize_locale(locale: str | None) -> str:
    """Return locale if supported, else the default locale."""
    if locale:
        candidate = locale.strip().lower()
        if candidate in SUPPORTED_LOCALES:
            return candidate
    return settings.DEFAULT_LOCALE


def translate(locale: str | None, key: str, params: dict[str, str] | None = None) -> str:
    """
    Translate a dotted key into the given locale.

    Falls back to the default locale, then to the raw key. Placeholders like
    {permission} are filled from params; unknown placeholders are left as-is.
    Never raises.
    """
    lang = normalize_locale(locale)
    message = _lookup(load_catalog(lang), key)
    if message is None and lang != settings.DEFAULT_LOCALE:
        message = _lookup(load_catalog(settings.DEFAULT_LOCALE), key)
    if message is None:
        return key
    if not params:
        return message
    return _PLACEHOLDER.sub(lambda m: str(params.get(m.group(1), m.group(0))), message)


def resolve_locale(
    query_lang: str | None = None,
    accept_language: str | None = None,
    user_locale: str | None = None,
) -> str:
    """Pick the request locale: user preference, then ?lang=, then Accept-Language, then default."""
    for candidate in (user_locale, query_lang):
        if candidate and candidate.strip().lower() in SUPPORTED_LOCALES:
            return candidate.strip().lower()
    if accept_language:
        # "pt-BR,pt;q=0.9,en;q=0.8" -> "pt"
        primary = accept_language.split(",")[0].split(";")[0].split("-")[0]
        if primary.strip().lower() in SUPPORTED_LOCALES:
            return primary.strip().lower()
    return settings.DEFAULT_LOCALE
