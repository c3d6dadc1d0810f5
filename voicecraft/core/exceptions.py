"""
Error taxonomy for the writing assistant.

Configuration and input errors are raised before any model call.
Generation and translation errors wrap malformed or failed model output.
RateLimitError is kept distinct so callers can back off.
"""

from typing import Optional


class AssistantError(Exception):
    """Base class for all writing assistant errors."""

    retryable: bool = False


class ConfigurationError(AssistantError):
    """Missing credentials or unusable configuration."""


class InvalidInputError(AssistantError, ValueError):
    """Request rejected before reaching the model."""


class UnsupportedLanguageError(InvalidInputError):
    """Target language is not in the supported set."""

    def __init__(self, value: object):
        self.value = value
        if isinstance(value, str):
            message = f"Unsupported target language: {value}"
        else:
            message = "Target language must be a string"
        super().__init__(message)


class MissingDraftError(InvalidInputError):
    """Mode requires a draft and none was given."""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"Draft is required for {mode} mode")


class GenerationError(AssistantError):
    """Model returned unusable output."""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        self.raw_output = raw_output
        super().__init__(message)


class RateLimitError(AssistantError):
    """Model quota or rate limit hit."""

    retryable = True


class TranslationError(AssistantError):
    """Translation failed for a reason other than rate limiting."""


class SocialSourceError(AssistantError):
    """Fetching posts from the social network failed."""
