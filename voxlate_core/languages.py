"""Language table used to validate and describe translation targets."""

from __future__ import annotations

from typing import Sequence

SUPPORTED_LANGUAGES: Sequence[dict[str, str]] = [
    {"code": "en", "name": "English", "nativeName": "English"},
    {"code": "es", "name": "Spanish", "nativeName": "Español"},
    {"code": "fr", "name": "French", "nativeName": "Français"},
    {"code": "de", "name": "German", "nativeName": "Deutsch"},
    {"code": "it", "name": "Italian", "nativeName": "Italiano"},
    {"code": "pt", "name": "Portuguese", "nativeName": "Português"},
    {"code": "zh", "name": "Chinese (Simplified)", "nativeName": "中文 (简体)"},
    {"code": "ja", "name": "Japanese", "nativeName": "日本語"},
    {"code": "ko", "name": "Korean", "nativeName": "한국어"},
    {"code": "ru", "name": "Russian", "nativeName": "Русский"},
    {"code": "ar", "name": "Arabic", "nativeName": "العربية"},
    {"code": "hi", "name": "Hindi", "nativeName": "हिन्दी"},
    {"code": "nl", "name": "Dutch", "nativeName": "Nederlands"},
    {"code": "sv", "name": "Swedish", "nativeName": "Svenska"},
    {"code": "da", "name": "Danish", "nativeName": "Dansk"},
    {"code": "no", "name": "Norwegian", "nativeName": "Norsk"},
    {"code": "fi", "name": "Finnish", "nativeName": "Suomi"},
    {"code": "pl", "name": "Polish", "nativeName": "Polski"},
    {"code": "tr", "name": "Turkish", "nativeName": "Türkçe"},
    {"code": "el", "name": "Greek", "nativeName": "Ελληνικά"},
    {"code": "he", "name": "Hebrew", "nativeName": "עברית"},
    {"code": "th", "name": "Thai", "nativeName": "ไทย"},
    {"code": "vi", "name": "Vietnamese", "nativeName": "Tiếng Việt"},
    {"code": "id", "name": "Indonesian", "nativeName": "Bahasa Indonesia"},
    {"code": "ms", "name": "Malay", "nativeName": "Bahasa Melayu"},
]

_BY_CODE = {item["code"]: item for item in SUPPORTED_LANGUAGES}


def is_valid_language_code(code: str | None) -> bool:
    return bool(code) and code in _BY_CODE


def language_name(code: str | None) -> str:
    """Return the English name for *code*, falling back to ``"English"``."""
    entry = _BY_CODE.get(code or "")
    return entry["name"] if entry else "English"


def native_language_name(code: str | None) -> str:
    entry = _BY_CODE.get(code or "")
    return entry["nativeName"] if entry else "English"


__all__ = [
    "SUPPORTED_LANGUAGES",
    "is_valid_language_code",
    "language_name",
    "native_language_name",
]
