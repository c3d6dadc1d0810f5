"""
Prompt construction for the writing assistant.

System context carries who the user is (profile + brand); the user prompt
carries what to do for one mode. Each mode has its own request variant and
the builder dispatches on the variant type.
"""

from collections import defaultdict
from typing import Optional, Union

from voicecraft.core.exceptions import MissingDraftError
from voicecraft.schemas import (
    AccountContext,
    GenerationMode,
    HumanizeRequest,
    ImproveRequest,
    LanguagePreference,
    ModeRequest,
    PostReference,
    StyleProfile,
    SuggestionContext,
    TranslateRequest,
    WriteRequest,
)
from voicecraft.utils.languages import english_language_name, resolve_writing_language
from voicecraft.utils.validators import PROMPT_INPUT_MAX_LENGTH, sanitize_prompt_input

SYSTEM_SAMPLE_POSTS = 2
TOP_ENGAGEMENT_TOPICS = 3
TRANSLATE_PREVIEW_MAX_LENGTH = 10000

JSON_CONTRACT = """Return ONLY valid JSON (no markdown, no explanations):
{"suggestions": ["..."]}"""


def compute_improve_min_chars(draft_length: int, max_chars: int) -> int:
    """Minimum length an improved version should reach."""
    if draft_length < 120:
        growth, floor = 40, 90
    elif draft_length < 260:
        growth, floor = 70, 180
    else:
        growth, floor = 50, int(draft_length * 1.15)

    desired = max(draft_length + growth, floor)
    ceiling = max(max_chars - 20, 40)
    return min(ceiling, desired)


def _clean(value: Optional[str], max_length: int = PROMPT_INPUT_MAX_LENGTH) -> Optional[str]:
    cleaned = sanitize_prompt_input(value, max_length=max_length)
    return cleaned or None


def _clean_reference(ref: Optional[PostReference]) -> Optional[PostReference]:
    if ref is None:
        return None
    return PostReference(text=sanitize_prompt_input(ref.text), author=sanitize_prompt_input(ref.author))


def build_mode_request(mode: GenerationMode, context: SuggestionContext, max_chars: int = 320) -> ModeRequest:
    """
    Build the request variant for a mode from a suggestion context.

    Raises:
        MissingDraftError: improve, humanize and translate need a draft
    """
    draft_limit = max(PROMPT_INPUT_MAX_LENGTH, max_chars)

    if mode is GenerationMode.WRITE:
        return WriteRequest(
            replying_to=_clean_reference(context.replying_to),
            quoting_post=_clean_reference(context.quoting_post),
            topic=_clean(context.topic),
            target_tone=_clean(context.target_tone),
        )

    if mode is GenerationMode.TRANSLATE:
        text = _clean(context.current_draft, TRANSLATE_PREVIEW_MAX_LENGTH)
        if not text:
            raise MissingDraftError(mode.value)
        return TranslateRequest(text=text)

    draft = _clean(context.current_draft, draft_limit)
    if not draft:
        raise MissingDraftError(mode.value)

    if mode is GenerationMode.IMPROVE:
        return ImproveRequest(
            draft=draft,
            target_tone=_clean(context.target_tone),
            target_platform=_clean(context.target_platform),
        )
    return HumanizeRequest(draft=draft, target_platform=_clean(context.target_platform))


def platform_guidance(platform: Optional[str]) -> str:
    """One line of platform framing, empty when no platform is given."""
    if not platform:
        return ""
    key = platform.strip().lower()
    if key in ("x", "twitter"):
        return "Platform: X. Keep it concise and punchy."
    if key == "linkedin":
        return "Platform: LinkedIn. Keep it structured and professional."
    return f"Platform: {platform}. Match the native cadence of {platform}."


class PromptBuilder:
    """
    Builds prompts for the writing assistant.

    Prompt Structure:
    1. System context (profile, brand, rules)
    2. Mode prompt (task, inputs, JSON contract)
    """

    @staticmethod
    def top_engagement_topics(profile: StyleProfile, limit: int = TOP_ENGAGEMENT_TOPICS) -> list[tuple[str, float]]:
        """Topics ranked by mean historical engagement score, best first."""
        scores_by_topic: dict[str, list[float]] = defaultdict(list)
        for insight in profile.engagement_insights:
            scores_by_topic[insight.topic].extend(insight.scores)

        scored = [
            (topic, sum(scores) / len(scores))
            for topic, scores in scores_by_topic.items()
            if scores
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:limit]

    @staticmethod
    def build_brand_block(account_context: AccountContext) -> list[str]:
        """Brand overlay lines, in fixed order."""
        parts: list[str] = []

        if account_context.brand_voice:
            parts += ["", "BRAND VOICE:", account_context.brand_voice]
        if account_context.bio:
            parts += ["", "BIO:", account_context.bio]
        if account_context.expertise:
            parts += ["", "EXPERTISE:", *[f"- {e}" for e in account_context.expertise]]
        if account_context.always_do:
            parts += ["", "ALWAYS DO:", *[f"- {a}" for a in account_context.always_do]]
        if account_context.never_do:
            parts += ["", "NEVER DO:", *[f"- {n}" for n in account_context.never_do]]
        if account_context.hashtags:
            parts += ["", "PREFERRED HASHTAGS:", " ".join(account_context.hashtags)]

        return parts

    @staticmethod
    def build_system_context(
        profile: StyleProfile,
        max_chars: int,
        account_context: Optional[AccountContext] = None,
    ) -> str:
        """Build the system instruction describing the user and the hard rules."""
        parts = [
            "You are the writing assistant for a social media user.",
            "",
            "USER PROFILE:",
            f"- Natural tone: {profile.tone.value}",
            f"- Average length: {profile.avg_length} characters",
            f"- Typical phrases: {', '.join(profile.common_phrases) or '(none)'}",
            f"- Frequent topics: {', '.join(profile.topics) or '(none)'}",
            f"- Emoji usage: {profile.emoji_usage.value}",
            f"- Preferred language: {profile.language_preference.value}",
        ]

        top_topics = PromptBuilder.top_engagement_topics(profile)
        if top_topics:
            parts += [
                "",
                "TOPICS THAT HISTORICALLY GET HIGH ENGAGEMENT (favour them when relevant, not mandatory):",
                *[f"- {topic} (avg score {score:.1f})" for topic, score in top_topics],
            ]

        samples = profile.sample_posts[:SYSTEM_SAMPLE_POSTS]
        if samples:
            parts += [
                "",
                "EXAMPLES OF HOW THEY WRITE:",
                *[f'{i}. "{sample}"' for i, sample in enumerate(samples, 1)],
            ]

        if account_context:
            parts += PromptBuilder.build_brand_block(account_context)

        parts += [
            "",
            "RULES:",
            f"- Maximum {max_chars} characters per suggestion",
            "- Keep the user's natural tone and style",
            "- Use their vocabulary and typical expressions",
        ]

        if account_context and account_context.never_do:
            parts += [f"- IMPORTANT: never do this: {rule}" for rule in account_context.never_do]

        return "\n".join(parts)

    @staticmethod
    def build_user_prompt(
        mode: GenerationMode,
        context: SuggestionContext,
        max_chars: int,
        language_preference: Union[LanguagePreference, str, None],
        suggestion_count: int,
    ) -> str:
        """
        Build the mode-specific user prompt.

        Raises:
            UnsupportedLanguageError: target language is not supported
            MissingDraftError: draft missing for a mode that needs one
        """
        language = english_language_name(
            resolve_writing_language(context.target_language, language_preference)
        )
        request = build_mode_request(mode, context, max_chars)

        if isinstance(request, WriteRequest):
            body = PromptBuilder._write_prompt(request, language, max_chars, suggestion_count)
        elif isinstance(request, ImproveRequest):
            body = PromptBuilder._improve_prompt(request, language, max_chars, suggestion_count)
        elif isinstance(request, HumanizeRequest):
            body = PromptBuilder._humanize_prompt(request, language, max_chars, suggestion_count)
        elif isinstance(request, TranslateRequest):
            body = PromptBuilder._translate_prompt(request, language, suggestion_count)
        else:
            raise TypeError(f"Unhandled mode request: {type(request).__name__}")

        return f"{body}\n\n{JSON_CONTRACT}"

    # Mode prompts

    @staticmethod
    def _write_prompt(request: WriteRequest, language: str, max_chars: int, count: int) -> str:
        parts = [f"Write in {language}.", ""]

        if request.replying_to:
            parts += [f"Replying to @{request.replying_to.author or 'user'}:", f'"{request.replying_to.text}"', ""]
        if request.quoting_post:
            parts += [f"Quoting @{request.quoting_post.author or 'user'}:", f'"{request.quoting_post.text}"', ""]
        if request.topic:
            parts += [f"Topic: {request.topic}", ""]
        if request.target_tone:
            parts += [f"Desired tone: {request.target_tone}", ""]

        parts.append(f"Generate exactly {count} different options (max {max_chars} characters each).")
        return "\n".join(parts)

    @staticmethod
    def _improve_prompt(request: ImproveRequest, language: str, max_chars: int, count: int) -> str:
        draft_length = len(request.draft)
        min_chars = compute_improve_min_chars(draft_length, max_chars)

        parts = [f"Write improvements in {language}.", "", "User draft:", f'"{request.draft}"', ""]

        if request.target_tone:
            parts += [f"Adjust to tone: {request.target_tone}", ""]
        guidance = platform_guidance(request.target_platform)
        if guidance:
            parts += [guidance, ""]

        parts += [
            "Improve this draft keeping its essence and voice but making it more effective.",
            f"The improved versions may be LONGER than the draft ({draft_length} characters): "
            "add substance, specifics or a stronger hook rather than padding.",
            f"Aim for at least {min_chars} characters per version (target band {min_chars}-{max_chars}).",
            f"Never exceed {max_chars} characters.",
            "",
            f"Provide exactly {count} improved versions.",
        ]
        return "\n".join(parts)

    @staticmethod
    def _humanize_prompt(request: HumanizeRequest, language: str, max_chars: int, count: int) -> str:
        parts = [f"Write the humanized versions in {language}.", "", "Draft:", f'"{request.draft}"', ""]

        guidance = platform_guidance(request.target_platform)
        if guidance:
            parts += [guidance, ""]

        parts += [
            "Rewrite this draft so it sounds like a real person wrote it:",
            "- Preserve the meaning; do not invent facts, numbers or claims",
            "- Remove AI-sounding boilerplate (hype openers, 'in today's fast-paced world', stacked adjectives)",
            "- Vary sentence length and rhythm; contractions are fine",
            f"- Never exceed {max_chars} characters",
            "",
            f"Provide exactly {count} humanized versions.",
        ]
        return "\n".join(parts)

    @staticmethod
    def _translate_prompt(request: TranslateRequest, language: str, count: int) -> str:
        return "\n".join([
            f"Translate this text to {language}, keeping the tone and style:",
            "",
            f'"{request.text}"',
            "",
            f"Provide exactly {count} versions of the translation:",
            "1. A literal translation",
            "2. A natural translation that reads as if written natively",
        ])
