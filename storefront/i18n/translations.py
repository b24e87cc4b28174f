"""Internationalization System (Arabic first, English second)"""

import json
from pathlib import Path
from typing import Any

from storefront import config
from storefront.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_LANGUAGES = {
    "ar": "العربية",
    "en": "English",
}

DEFAULT_LANGUAGE = config.DEFAULT_LANGUAGE if config.DEFAULT_LANGUAGE in SUPPORTED_LANGUAGES else "ar"

# Cache for loaded translations
_translations: dict[str, dict[str, Any]] = {}


def _get_locales_path() -> Path:
    """Get path to locales directory"""
    paths = [
        Path(__file__).parent.parent.parent / "locales",  # From storefront/i18n/
        Path("locales"),  # Current directory
    ]

    for path in paths:
        if path.exists():
            return path

    return paths[0]


def _load_translations(lang: str) -> dict[str, Any]:
    """Load translations for a language"""
    if lang in _translations:
        return _translations[lang]

    file_path = _get_locales_path() / f"{lang}.json"

    if not file_path.exists():
        if lang != DEFAULT_LANGUAGE:
            return _load_translations(DEFAULT_LANGUAGE)
        return {}

    try:
        with open(file_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load locale {lang}: {e}")
        return {}

    if not isinstance(data, dict):
        return {}
    _translations[lang] = data
    return data


def _lookup(translations: dict[str, Any], key: str) -> Any:
    """Resolve a plain or dotted key ("checkout.phone_required")."""
    current: Any = translations
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def get_text(key: str, lang: str = DEFAULT_LANGUAGE, default: str | None = None, **kwargs) -> str:
    """
    Get translated text by key.

    Args:
        key: Translation key (e.g., "cart.empty", "checkout.phone_invalid")
        lang: Language code (e.g., "ar", "en", "en-US")
        default: Default value if key not found (instead of returning key)
        **kwargs: Variables to format into the string

    Returns:
        Translated string or key/default if not found
    """
    lang = detect_language(lang)

    text = _lookup(_load_translations(lang), key)

    # Fall back to the default language
    if text is None and lang != DEFAULT_LANGUAGE:
        text = _lookup(_load_translations(DEFAULT_LANGUAGE), key)

    if not isinstance(text, str):
        return default if default is not None else key

    if kwargs:
        try:
            return text.format(**kwargs)
        except (KeyError, ValueError, IndexError):
            return text

    return text


def detect_language(language_code: str | None) -> str:
    """
    Normalize a language code or Accept-Language header to a supported one.

    "en-US,en;q=0.9" -> "en", "fr" -> "ar"
    """
    if not language_code:
        return DEFAULT_LANGUAGE

    lang = language_code.split(",")[0].split(";")[0].split("-")[0].strip().lower()
    return lang if lang in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def reload_translations() -> None:
    """Clear translation cache"""
    _translations.clear()
