"""
Brand Coherence Validator.

Scores a piece of text against a user's style profile. Accounts without a
brand voice get a quick heuristic score; accounts with one get a
model-assisted review. Validation always returns a result: any failure in
the model path falls back to the heuristic.
"""

import re
from typing import Optional

import structlog

from voicecraft.core.config import Settings, settings as default_settings
from voicecraft.core.llm_clients import TextGenerator, gemini_client
from voicecraft.schemas import (
    AccountContext,
    BrandValidationResult,
    EmojiUsage,
    StyleProfile,
)
from voicecraft.utils.formatters import parse_json_object

logger = structlog.get_logger(__name__)


EMOJI_RE = re.compile(
    r"[\U0001F300-\U0001FAFF\U0001F000-\U0001F2FF\U00002600-\U000027BF\U00002B00-\U00002BFF]"
)

BRAND_VALIDATION_SCHEMA = {
    "type": "object",
    "properties": {
        "isCoherent": {"type": "boolean"},
        "coherenceScore": {"type": "number"},
        "violations": {"type": "array", "items": {"type": "string"}},
        "strengths": {"type": "array", "items": {"type": "string"}},
        "feedback": {"type": "string"},
    },
    "required": ["isCoherent", "coherenceScore", "violations", "strengths", "feedback"],
}


def count_emojis(text: str) -> int:
    return len(EMOJI_RE.findall(text))


def _bullets(title: str, items: list[str]) -> str:
    if not items:
        return ""
    lines = "\n".join(f"- {item}" for item in items)
    return f"{title}:\n{lines}\n\n"


def build_validation_prompt(
    suggestion: str,
    profile: StyleProfile,
    account_context: AccountContext,
) -> str:
    """Compose the review prompt with the profile, brand rules and candidate text."""
    return (
        "You are a brand voice validator. Analyze if this suggestion follows the user's "
        "established brand voice and style.\n\n"
        "USER PROFILE:\n"
        f"- Tone: {profile.tone.value}\n"
        f"- Average length: {profile.avg_length} characters\n"
        f"- Common phrases: {', '.join(profile.common_phrases) or '(none)'}\n"
        f"- Frequent topics: {', '.join(profile.topics) or '(none)'}\n"
        f"- Emoji usage: {profile.emoji_usage.value}\n"
        f"- Language preference: {profile.language_preference.value}\n\n"
        "BRAND VOICE:\n"
        f"{account_context.brand_voice or '(not defined)'}\n\n"
        f"{_bullets('EXPERTISE AREAS', account_context.expertise)}"
        f"{_bullets('ALWAYS DO', account_context.always_do)}"
        f"{_bullets('NEVER DO', account_context.never_do)}"
        "SUGGESTION TO VALIDATE:\n"
        f'"{suggestion}"\n\n'
        "Respond with JSON: isCoherent (boolean), coherenceScore (0-100), "
        "violations (issues found, if any), strengths (positive aspects), "
        "feedback (one short sentence)."
    )


def heuristic_feedback(score: float, violations: list[str], strengths: list[str]) -> str:
    if score >= 90:
        return strengths[0] if strengths else "Perfect match for your brand voice"
    if score >= 75:
        return "This fits your brand well with minor adjustments"
    if score >= 60:
        return f"Mostly aligned: {violations[0] if violations else 'consider adjusting'}"
    return f"Off-brand: {violations[0] if violations else 'does not match your style'}"


class BrandCoherenceValidator:
    """Two-tier brand coherence scoring."""

    def __init__(self, llm: Optional[TextGenerator] = None, config: Optional[Settings] = None):
        self.llm = llm or gemini_client
        self.config = config or default_settings

    async def validate(
        self,
        suggestion: str,
        profile: StyleProfile,
        account_context: Optional[AccountContext] = None,
    ) -> BrandValidationResult:
        """Score a suggestion. Never raises."""
        if account_context is None or not account_context.brand_voice:
            return self.validate_basic(suggestion, profile)

        try:
            return await self._validate_with_brand(suggestion, profile, account_context)
        except Exception as e:
            logger.warning(
                "Model brand validation failed, using heuristic",
                user_id=profile.user_id,
                error=str(e),
            )
            return self.validate_basic(suggestion, profile)

    def validate_basic(self, suggestion: str, profile: StyleProfile) -> BrandValidationResult:
        """Heuristic score from length, emoji usage and common phrases."""
        violations: list[str] = []
        strengths: list[str] = []
        score = 100

        avg_length = max(profile.avg_length, 1)
        length_diff_pct = abs(len(suggestion) - avg_length) / avg_length * 100
        if length_diff_pct > 50:
            violations.append(f"Length very different from your average ({profile.avg_length} chars)")
            score -= 20
        elif length_diff_pct > 25:
            violations.append("Length somewhat different from your average")
            score -= 10
        else:
            strengths.append("Length coherent with your style")

        emojis = count_emojis(suggestion)
        if profile.emoji_usage is EmojiUsage.NONE and emojis > 0:
            violations.append("Contains emojis but you normally don't use them")
            score -= 15
        elif profile.emoji_usage is EmojiUsage.HEAVY and emojis == 0:
            violations.append("Has no emojis and you typically use plenty")
            score -= 10
        elif profile.emoji_usage is EmojiUsage.LIGHT and emojis > 2:
            violations.append("Too many emojis for your style")
            score -= 5
        else:
            strengths.append("Emoji usage coherent")

        lowered = suggestion.lower()
        if any(phrase and phrase.lower() in lowered for phrase in profile.common_phrases):
            strengths.append("Includes phrases you normally use")

        score = max(0, min(100, score))
        return BrandValidationResult.from_score(
            score,
            violations=violations,
            strengths=strengths,
            feedback=heuristic_feedback(score, violations, strengths),
        )

    async def _validate_with_brand(
        self,
        suggestion: str,
        profile: StyleProfile,
        account_context: AccountContext,
    ) -> BrandValidationResult:
        prompt = build_validation_prompt(suggestion, profile, account_context)
        response = await self.llm.generate(
            prompt,
            model=self.config.gemini_model_brand_validation,
            fallback_model=self.config.gemini_model_fallback,
            schema=BRAND_VALIDATION_SCHEMA,
            temperature=0.2,
        )

        payload = parse_json_object(response)
        score = payload.get("coherenceScore")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValueError("coherenceScore missing or not a number")

        violations = payload.get("violations") or []
        strengths = payload.get("strengths") or []
        if not isinstance(violations, list) or not isinstance(strengths, list):
            raise ValueError("violations and strengths must be lists")
        violations = [v for v in violations if isinstance(v, str)]
        strengths = [s for s in strengths if isinstance(s, str)]
        feedback = payload.get("feedback")
        if not isinstance(feedback, str) or not feedback.strip():
            feedback = "No comment"

        result = BrandValidationResult.from_score(
            score,
            violations=violations,
            strengths=strengths,
            feedback=feedback.strip(),
        )
        logger.info(
            "Brand validation scored",
            user_id=profile.user_id,
            score=result.coherence_score,
            category=result.category.value,
        )
        return result
