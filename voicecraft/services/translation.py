"""
Translation Engine.

Short text is translated in one call. Longer text is split at paragraph
boundaries into chunks under the size ceiling and translated chunk by
chunk, in order, so the output keeps the source structure.
"""

from typing import Optional

import structlog

from voicecraft.core.config import Settings, settings as default_settings
from voicecraft.core.exceptions import (
    AssistantError,
    InvalidInputError,
    RateLimitError,
    TranslationError,
)
from voicecraft.core.llm_clients import TextGenerator, gemini_client
from voicecraft.utils.formatters import parse_json_object, strip_quote_pair
from voicecraft.utils.languages import assert_supported_language, english_language_name

logger = structlog.get_logger(__name__)


PARAGRAPH_SEPARATOR = "\n\n"

TRANSLATION_SCHEMA = {
    "type": "object",
    "properties": {
        "translation": {"type": "string"},
    },
    "required": ["translation"],
}

TRANSLATION_PROMPT = """Translate the following text to {language}.

Rules:
- Translate literally and completely: every sentence, in the original order
- Do not summarize, shorten, add or reorder anything
- Preserve formatting exactly: line breaks, blank lines, lists, links, mentions, hashtags and emojis
- Keep proper nouns, handles, URLs and technical or crypto terms as they are when appropriate

Respond with JSON: {{"translation": "<translated text>"}}

Text:
{text}"""

RATE_LIMIT_MARKERS = ("429", "quota", "rate limit", "resource exhausted", "resource_exhausted")


def split_into_chunks(text: str, max_chunk_size: int) -> list[str]:
    """
    Group paragraphs into chunks of at most max_chunk_size characters.

    A chunk is flushed when adding the next paragraph would overflow it.
    A single paragraph longer than the limit becomes its own chunk and is
    never split. Joining the chunks with a blank line restores the text.
    """
    chunks: list[str] = []
    current: list[str] = []
    size = 0

    for paragraph in text.split(PARAGRAPH_SEPARATOR):
        added = len(paragraph) + (len(PARAGRAPH_SEPARATOR) if current else 0)
        if current and size + added > max_chunk_size:
            chunks.append(PARAGRAPH_SEPARATOR.join(current))
            current = [paragraph]
            size = len(paragraph)
        else:
            current.append(paragraph)
            size += added

    if current:
        chunks.append(PARAGRAPH_SEPARATOR.join(current))
    return chunks


def is_rate_limit_error(error: BaseException) -> bool:
    if isinstance(error, RateLimitError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class TranslationEngine:
    """Length-safe translation over the translation-tuned model."""

    def __init__(self, llm: Optional[TextGenerator] = None, config: Optional[Settings] = None):
        self.llm = llm or gemini_client
        self.config = config or default_settings

    async def translate(self, text: str, target_language: str) -> str:
        """
        Translate text into a supported language.

        Raises:
            UnsupportedLanguageError: Unknown target language
            InvalidInputError: Empty text
            RateLimitError: Model quota hit; safe to retry later
            TranslationError: Any other failure; no partial output
        """
        code = assert_supported_language(target_language)
        if not text or not text.strip():
            raise InvalidInputError("Text is required for translation")

        language = english_language_name(code)
        chunk_size = self.config.translation_chunk_size

        if len(text) <= chunk_size:
            logger.info("Translating text", target_language=code, chars=len(text))
            return await self._translate_chunk(text, language, index=0, total=1)

        chunks = split_into_chunks(text, chunk_size)
        logger.info(
            "Translating text in chunks",
            target_language=code,
            chars=len(text),
            chunks=len(chunks),
        )

        translated: list[str] = []
        for index, chunk in enumerate(chunks):
            if not chunk.strip():
                translated.append("")
                continue
            translated.append(await self._translate_chunk(chunk, language, index=index, total=len(chunks)))

        return PARAGRAPH_SEPARATOR.join(translated)

    async def _translate_chunk(self, text: str, language: str, index: int, total: int) -> str:
        prompt = TRANSLATION_PROMPT.format(language=language, text=text)

        try:
            response = await self.llm.generate(
                prompt,
                model=self.config.gemini_model_translation,
                fallback_model=self.config.gemini_model_translation_fallback,
                schema=TRANSLATION_SCHEMA,
                temperature=0.2,
                max_output_tokens=self.config.translation_max_tokens,
            )
            translation = parse_json_object(response).get("translation")
            if not isinstance(translation, str) or not translation.strip():
                raise TranslationError("Model response has no translation")
        except Exception as e:
            if is_rate_limit_error(e):
                logger.warning("Translation rate limited", chunk=index + 1, total=total, error=str(e))
                raise RateLimitError(f"Translation rate limited: {e}") from e
            if isinstance(e, AssistantError) and not isinstance(e, TranslationError):
                raise
            logger.error("Translation failed", chunk=index + 1, total=total, error=str(e))
            raise TranslationError(f"Failed to translate chunk {index + 1}/{total}: {e}") from e

        return strip_quote_pair(translation)
