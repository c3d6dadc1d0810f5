"""
Generation Engine - schema-constrained suggestion generation.

Suggestions are always requested as {"suggestions": [...]} and any output
that does not parse into that shape is a hard failure. Improve mode for Pro
users gets one extra pass when every suggestion comes back too short.
"""

from typing import Any, Optional

import structlog

from voicecraft.core.config import Settings, settings as default_settings
from voicecraft.core.exceptions import GenerationError
from voicecraft.core.llm_clients import TextGenerator, gemini_client
from voicecraft.schemas import GenerationMode, StyleProfile, SuggestionContext
from voicecraft.utils.formatters import parse_json_object, strip_wrapping_quotes
from voicecraft.utils.prompts import PromptBuilder, build_mode_request, compute_improve_min_chars

logger = structlog.get_logger(__name__)


SUGGESTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "suggestions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["suggestions"],
}

TRANSLATE_MIN_CEILING = 10000
NEAR_MISS_MARGIN = 20
NEAR_MISS_REQUIRED = 2

LENGTH_RETRY_DIRECTIVE = """

MANDATORY LENGTH REQUIREMENT:
Your previous versions were too short. Every version MUST be at least {min_chars} characters long
and at most {max_chars} characters. Expand with concrete detail, not filler."""


def parse_suggestions(text: str) -> list[Any]:
    """
    Extract the raw suggestions array from model output.

    Raises:
        GenerationError: Output is not JSON or lacks a suggestions array
    """
    try:
        payload = parse_json_object(text)
    except ValueError as e:
        raise GenerationError("Model returned invalid JSON for suggestions", raw_output=text) from e

    suggestions = payload.get("suggestions")
    if not isinstance(suggestions, list):
        raise GenerationError("Model response has no suggestions array", raw_output=text)
    return suggestions


def filter_suggestions(raw: list[Any], ceiling: int, count: int) -> list[str]:
    """Trim, unquote, drop empty or oversized items and cap to count."""
    cleaned: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        suggestion = strip_wrapping_quotes(item)
        if not suggestion or len(suggestion) > ceiling:
            continue
        cleaned.append(suggestion)
    return cleaned[:count]


def needs_length_retry(suggestions: list[str], draft_length: int, min_chars: int) -> bool:
    """True when nothing reaches the target and fewer than two come close."""
    if any(len(s) >= min_chars for s in suggestions):
        return False
    near_misses = sum(1 for s in suggestions if len(s) >= draft_length + NEAR_MISS_MARGIN)
    return near_misses < NEAR_MISS_REQUIRED


class GenerationEngine:
    """
    Drives suggestion generation for write, improve, humanize and the
    translate preview.
    """

    def __init__(self, llm: Optional[TextGenerator] = None, config: Optional[Settings] = None):
        self.llm = llm or gemini_client
        self.config = config or default_settings

    async def generate_suggestions(
        self,
        mode: GenerationMode,
        profile: StyleProfile,
        context: SuggestionContext,
        max_chars: int = 320,
        is_pro_user: bool = False,
    ) -> list[str]:
        """
        Generate suggestions for one mode.

        Args:
            mode: Generation mode
            profile: User's style profile
            context: Request-scoped inputs
            max_chars: Per-suggestion character limit
            is_pro_user: Pro tier uses the pro model and gets the length retry

        Returns:
            Between 1 and mode.suggestion_count suggestions

        Raises:
            InvalidInputError: Unsupported language or missing draft
            GenerationError: Model output unusable or empty after filtering
        """
        mode = GenerationMode(mode)
        count = mode.suggestion_count

        system_context = PromptBuilder.build_system_context(profile, max_chars, context.account_context)
        user_prompt = PromptBuilder.build_user_prompt(
            mode, context, max_chars, profile.language_preference, count
        )

        ceiling = max(max_chars, TRANSLATE_MIN_CEILING) if mode is GenerationMode.TRANSLATE else max_chars
        model = self.config.gemini_model_pro if is_pro_user else self.config.gemini_model_default

        logger.info(
            "Generating suggestions",
            mode=mode.value,
            user_id=profile.user_id,
            max_chars=max_chars,
            model=model,
        )

        suggestions = await self._request(user_prompt, system_context, model, ceiling, count)

        if mode is GenerationMode.IMPROVE and is_pro_user:
            draft = build_mode_request(mode, context, max_chars).draft
            suggestions = await self._apply_length_retry(
                suggestions,
                user_prompt=user_prompt,
                system_context=system_context,
                model=model,
                draft_length=len(draft),
                max_chars=max_chars,
                count=count,
            )

        return suggestions

    async def _request(
        self,
        prompt: str,
        system_context: str,
        model: str,
        ceiling: int,
        count: int,
    ) -> list[str]:
        text = await self.llm.generate(
            prompt,
            model=model,
            fallback_model=self.config.gemini_model_fallback,
            schema=SUGGESTIONS_SCHEMA,
            system_instruction=system_context,
            temperature=0.8,
            top_p=self.config.llm_top_p,
        )

        suggestions = filter_suggestions(parse_suggestions(text), ceiling, count)
        if not suggestions:
            raise GenerationError("Model returned no usable suggestions", raw_output=text)
        return suggestions

    async def _apply_length_retry(
        self,
        suggestions: list[str],
        *,
        user_prompt: str,
        system_context: str,
        model: str,
        draft_length: int,
        max_chars: int,
        count: int,
    ) -> list[str]:
        """Retry once with a length directive; keep the originals on any failure."""
        min_chars = compute_improve_min_chars(draft_length, max_chars)
        if not needs_length_retry(suggestions, draft_length, min_chars):
            return suggestions

        logger.info(
            "Improve suggestions too short, retrying",
            draft_length=draft_length,
            min_chars=min_chars,
            lengths=[len(s) for s in suggestions],
        )

        retry_prompt = user_prompt + LENGTH_RETRY_DIRECTIVE.format(min_chars=min_chars, max_chars=max_chars)
        try:
            return await self._request(retry_prompt, system_context, model, max_chars, count)
        except Exception as e:
            logger.warning("Length retry failed, keeping original suggestions", error=str(e))
            return suggestions
