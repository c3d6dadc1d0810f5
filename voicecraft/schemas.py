"""
Pydantic schemas for the writing assistant domain.

StyleProfile and AccountContext are persisted (see voicecraft.models);
SuggestionContext and the mode requests are request-scoped only.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator


# ============================================================================
# Enums
# ============================================================================

class Tone(str, Enum):
    """Natural tone detected in a user's posts."""
    CASUAL = "casual"
    FORMAL = "formal"
    TECHNICAL = "technical"
    HUMOROUS = "humorous"
    MIXED = "mixed"


class EmojiUsage(str, Enum):
    """How often a user reaches for emojis."""
    NONE = "none"
    LIGHT = "light"
    HEAVY = "heavy"


class LanguagePreference(str, Enum):
    """Language a user usually writes in."""
    EN = "en"
    ES = "es"
    MIXED = "mixed"


class GenerationMode(str, Enum):
    """Suggestion modes supported by the generation engine."""
    WRITE = "write"
    IMPROVE = "improve"
    HUMANIZE = "humanize"
    TRANSLATE = "translate"

    @property
    def suggestion_count(self) -> int:
        return 3 if self is GenerationMode.WRITE else 2


class BrandCategory(str, Enum):
    """Coarse bucket derived from a coherence score."""
    PERFECT = "perfect"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    OFF_BRAND = "off_brand"

    @classmethod
    def from_score(cls, score: float) -> "BrandCategory":
        if score >= 90:
            return cls.PERFECT
        if score >= 75:
            return cls.GOOD
        if score >= 60:
            return cls.ACCEPTABLE
        return cls.OFF_BRAND


# ============================================================================
# Profiles
# ============================================================================

MAX_SAMPLE_POSTS = 20


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EngagementInsight(BaseModel):
    """Historical engagement scores for one topic."""
    topic: str
    scores: list[float] = Field(default_factory=list)


class StyleProfile(BaseModel):
    """Derived writing fingerprint of one user."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    social_id: int
    tone: Tone = Tone.CASUAL
    avg_length: int = 150
    common_phrases: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    emoji_usage: EmojiUsage = EmojiUsage.LIGHT
    language_preference: LanguagePreference = LanguagePreference.EN
    sample_posts: list[str] = Field(default_factory=list)  # most recent first
    analyzed_at: datetime = Field(default_factory=utcnow)
    engagement_insights: list[EngagementInsight] = Field(default_factory=list)

    @field_validator("sample_posts")
    @classmethod
    def limit_samples(cls, v: list[str]) -> list[str]:
        return v[:MAX_SAMPLE_POSTS]

    @field_validator("analyzed_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        """Naive timestamps from the store are treated as UTC."""
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    @classmethod
    def default(cls, user_id: str, social_id: int) -> "StyleProfile":
        """Synthetic profile used before any history has been analyzed."""
        return cls(user_id=user_id, social_id=social_id)

    def is_stale(self, max_age_days: int, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now - self.analyzed_at > timedelta(days=max_age_days)


class ProfileAnalysis(BaseModel):
    """
    Partial result of a style analysis call.

    Every field is optional and validated on its own: a bad value for one
    field is dropped without discarding the rest.
    """

    tone: Optional[Tone] = None
    avg_length: Optional[float] = Field(default=None, alias="avgLength", gt=0, allow_inf_nan=False)
    common_phrases: Optional[list[str]] = Field(default=None, alias="commonPhrases")
    topics: Optional[list[str]] = None
    emoji_usage: Optional[EmojiUsage] = Field(default=None, alias="emojiUsage")
    language_preference: Optional[LanguagePreference] = Field(default=None, alias="languagePreference")
    # Advisory only, never persisted
    power_phrases: Optional[list[str]] = Field(default=None, alias="powerPhrases")
    content_patterns: Optional[Any] = Field(default=None, alias="contentPatterns")

    model_config = {"populate_by_name": True}

    @field_validator("*", mode="wrap")
    @classmethod
    def drop_invalid(cls, value, handler):
        try:
            return handler(value)
        except ValidationError:
            return None

    @classmethod
    def from_payload(cls, payload: Any) -> "ProfileAnalysis":
        if not isinstance(payload, dict):
            return cls()
        return cls.model_validate(payload)

    def merged_fields(self) -> dict[str, Any]:
        """Persistable fields, falling back to profile defaults one by one."""
        defaults = StyleProfile.model_fields
        return {
            "tone": self.tone or defaults["tone"].default,
            "avg_length": round(self.avg_length) if self.avg_length else defaults["avg_length"].default,
            "common_phrases": self.common_phrases or [],
            "topics": self.topics or [],
            "emoji_usage": self.emoji_usage or defaults["emoji_usage"].default,
            "language_preference": self.language_preference or defaults["language_preference"].default,
        }


class AccountContext(BaseModel):
    """Optional brand overlay configured for an account."""

    brand_voice: Optional[str] = None
    bio: Optional[str] = None
    expertise: list[str] = Field(default_factory=list)
    always_do: list[str] = Field(default_factory=list)
    never_do: list[str] = Field(default_factory=list)
    hashtags: list[str] = Field(default_factory=list)
    default_tone: Optional[str] = None
    default_language: Optional[str] = None


# ============================================================================
# Requests
# ============================================================================

class PostReference(BaseModel):
    """Excerpt of a post being replied to or quoted."""
    text: str
    author: str = ""


class SuggestionContext(BaseModel):
    """Request-scoped inputs for one suggestion call. Never persisted."""

    replying_to: Optional[PostReference] = None
    quoting_post: Optional[PostReference] = None
    current_draft: Optional[str] = None
    topic: Optional[str] = None
    target_tone: Optional[str] = None
    target_language: Optional[str] = None
    target_platform: Optional[str] = None
    account_context: Optional[AccountContext] = None


class WriteRequest(BaseModel):
    mode: Literal[GenerationMode.WRITE] = GenerationMode.WRITE
    replying_to: Optional[PostReference] = None
    quoting_post: Optional[PostReference] = None
    topic: Optional[str] = None
    target_tone: Optional[str] = None


class ImproveRequest(BaseModel):
    mode: Literal[GenerationMode.IMPROVE] = GenerationMode.IMPROVE
    draft: str
    target_tone: Optional[str] = None
    target_platform: Optional[str] = None


class HumanizeRequest(BaseModel):
    mode: Literal[GenerationMode.HUMANIZE] = GenerationMode.HUMANIZE
    draft: str
    target_platform: Optional[str] = None


class TranslateRequest(BaseModel):
    mode: Literal[GenerationMode.TRANSLATE] = GenerationMode.TRANSLATE
    text: str


ModeRequest = Annotated[
    Union[WriteRequest, ImproveRequest, HumanizeRequest, TranslateRequest],
    Field(discriminator="mode"),
]


# ============================================================================
# Results
# ============================================================================

class SocialPost(BaseModel):
    """Post fetched from the social network."""
    text: str = ""
    hash: Optional[str] = None
    timestamp: Optional[datetime] = None


class BrandValidationResult(BaseModel):
    """Structured brand coherence report."""

    coherence_score: float
    is_coherent: bool
    violations: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    feedback: str
    category: BrandCategory

    @classmethod
    def from_score(
        cls,
        score: float,
        violations: list[str],
        strengths: list[str],
        feedback: str,
    ) -> "BrandValidationResult":
        clamped = max(0.0, min(100.0, float(score)))
        return cls(
            coherence_score=clamped,
            is_coherent=clamped >= 70,
            violations=violations,
            strengths=strengths,
            feedback=feedback,
            category=BrandCategory.from_score(clamped),
        )


class ProfileSummary(BaseModel):
    """Profile fields echoed back alongside suggestions."""

    tone: Tone
    avg_length: int
    topics: list[str] = Field(default_factory=list)
    language_preference: LanguagePreference
    analyzed_at: datetime

    @classmethod
    def from_profile(cls, profile: StyleProfile) -> "ProfileSummary":
        return cls(
            tone=profile.tone,
            avg_length=profile.avg_length,
            topics=profile.topics,
            language_preference=profile.language_preference,
            analyzed_at=profile.analyzed_at,
        )


class SuggestionResult(BaseModel):
    mode: GenerationMode
    suggestions: list[str]
    profile: ProfileSummary
    voice_mode: Literal["brand", "personal"]
