"""
Supported target languages for generation and translation.
"""

from typing import Optional, Union

from voicecraft.core.exceptions import UnsupportedLanguageError
from voicecraft.schemas import LanguagePreference

# Code -> English name. Order matches the language picker.
SUPPORTED_LANGUAGES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "it": "Italian",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ar": "Arabic",
    "hi": "Hindi",
    "nl": "Dutch",
    "ru": "Russian",
    "tr": "Turkish",
    "pl": "Polish",
    "sv": "Swedish",
    "da": "Danish",
    "fi": "Finnish",
    "no": "Norwegian",
    "he": "Hebrew",
    "vi": "Vietnamese",
    "th": "Thai",
    "id": "Indonesian",
}

DEFAULT_LANGUAGE = "en"


def is_supported_language(value: object) -> bool:
    return isinstance(value, str) and value in SUPPORTED_LANGUAGES


def assert_supported_language(value: object) -> str:
    """Return the code unchanged, or raise UnsupportedLanguageError."""
    if not is_supported_language(value):
        raise UnsupportedLanguageError(value)
    return value


def english_language_name(code: str) -> str:
    return SUPPORTED_LANGUAGES[assert_supported_language(code)]


def resolve_writing_language(
    target_language: Optional[str],
    language_preference: Union[LanguagePreference, str, None],
) -> str:
    """
    Pick the language suggestions are written in.

    An explicit target must be supported. Without one, the profile's
    preference wins unless it is "mixed", which maps to English.
    """
    if target_language is not None:
        return assert_supported_language(target_language)

    preference = (
        language_preference.value
        if isinstance(language_preference, LanguagePreference)
        else language_preference
    )
    if preference and preference != LanguagePreference.MIXED.value and is_supported_language(preference):
        return preference
    return DEFAULT_LANGUAGE
