# Internationalization Module
from .translations import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, detect_language, get_text

__all__ = ["DEFAULT_LANGUAGE", "SUPPORTED_LANGUAGES", "detect_language", "get_text"]
