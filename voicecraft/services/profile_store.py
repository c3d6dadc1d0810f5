"""
Profile Store.

Fetch-or-create for a user's StyleProfile with deduplicated background
refresh. Reads never wait on the model: a stale or missing profile is
returned (or synthesized) immediately and the refresh runs as a task.
"""

import asyncio
from typing import Optional

import structlog

from voicecraft.core.config import Settings, settings as default_settings
from voicecraft.core.llm_clients import TextGenerator, gemini_client
from voicecraft.core.observability import capture_exception
from voicecraft.schemas import ProfileAnalysis, StyleProfile, utcnow
from voicecraft.services.repositories import ProfileRepository
from voicecraft.services.social_source import SocialSource
from voicecraft.utils.formatters import parse_json_object

logger = structlog.get_logger(__name__)


STYLE_ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "tone": {"type": "string", "enum": ["casual", "formal", "technical", "humorous", "mixed"]},
        "avgLength": {"type": "integer"},
        "commonPhrases": {"type": "array", "items": {"type": "string"}},
        "topics": {"type": "array", "items": {"type": "string"}},
        "emojiUsage": {"type": "string", "enum": ["none", "light", "heavy"]},
        "languagePreference": {"type": "string", "enum": ["en", "es", "mixed"]},
        "powerPhrases": {"type": "array", "items": {"type": "string"}},
        "contentPatterns": {
            "type": "object",
            "properties": {
                "hooks": {"type": "array", "items": {"type": "string"}},
                "structure": {"type": "string"},
            },
        },
    },
    "required": ["tone", "avgLength", "commonPhrases", "topics", "emojiUsage", "languagePreference"],
}


STYLE_ANALYSIS_PROMPT = """Analyze the writing style of this social media user based on their recent posts:

{posts}

Respond with JSON:
- tone: one of casual, formal, technical, humorous, mixed
- avgLength: average number of characters per post
- commonPhrases: up to 5 phrases or expressions they repeat
- topics: up to 5 topics they write about most
- emojiUsage: one of none, light, heavy
- languagePreference: one of en, es, mixed
- powerPhrases: phrases that seem to drive engagement (optional)
- contentPatterns: recurring hooks and post structure (optional)"""


def refresh_key(user_id: str, social_id: int) -> str:
    return f"{user_id}:{social_id}"


class ProfileStore:
    """
    Service for reading and refreshing style profiles.

    At most one background refresh runs per (user_id, social_id). The
    in-flight map holds the running task and is cleared by the task's
    done callback, whatever the outcome.
    """

    def __init__(
        self,
        repository: ProfileRepository,
        social_source: SocialSource,
        llm: Optional[TextGenerator] = None,
        config: Optional[Settings] = None,
    ):
        self.repository = repository
        self.social_source = social_source
        self.llm = llm or gemini_client
        self.config = config or default_settings
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def pending_refreshes(self) -> set[str]:
        return set(self._inflight)

    async def get_or_create(self, user_id: str, social_id: int) -> StyleProfile:
        """
        Return the user's profile without waiting on any model call.

        Missing profiles are synthesized from defaults; missing or stale
        profiles schedule a background refresh.
        """
        profile = await self.repository.find_by_user_id(user_id)

        if profile is None:
            logger.info("No style profile yet, using default", user_id=user_id)
            self.schedule_refresh(user_id, social_id)
            return StyleProfile.default(user_id, social_id)

        if profile.is_stale(self.config.profile_cache_days):
            logger.info(
                "Style profile stale, refreshing in background",
                user_id=user_id,
                analyzed_at=profile.analyzed_at.isoformat(),
            )
            self.schedule_refresh(user_id, social_id)

        return profile

    def schedule_refresh(self, user_id: str, social_id: int) -> bool:
        """
        Start a background refresh unless one is already running.

        Returns True if a new refresh task was started.
        """
        key = refresh_key(user_id, social_id)
        if key in self._inflight:
            logger.debug("Profile refresh already in flight", key=key)
            return False

        task = asyncio.create_task(self._background_refresh(user_id, social_id))
        self._inflight[key] = task
        task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return True

    async def wait_for_pending(self) -> None:
        """Wait for every in-flight refresh to settle."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight.values()), return_exceptions=True)

    async def refresh_now(self, user_id: str, social_id: int) -> StyleProfile:
        """Re-analyze inline and return the stored profile. Errors propagate."""
        return await self.analyze_and_save(user_id, social_id)

    async def _background_refresh(self, user_id: str, social_id: int) -> None:
        try:
            await self.analyze_and_save(user_id, social_id)
        except Exception as e:
            logger.error(
                "Background profile refresh failed",
                user_id=user_id,
                social_id=social_id,
                error=str(e),
            )
            capture_exception(e, {"user_id": user_id, "social_id": social_id})

    async def analyze_and_save(self, user_id: str, social_id: int) -> StyleProfile:
        """Fetch recent posts, analyze them and persist the result."""
        posts = await self.social_source.fetch_recent_posts(
            social_id,
            limit=self.config.style_profile_fetch_limit,
            include_reposts=True,
        )
        texts = [
            post.text.strip()
            for post in posts
            if post.text and len(post.text.strip()) >= self.config.style_profile_min_post_length
        ]

        if len(texts) < self.config.style_profile_min_posts:
            logger.info(
                "Not enough posts for style analysis, storing default",
                user_id=user_id,
                usable_posts=len(texts),
            )
            return await self._save(user_id, social_id, ProfileAnalysis(), samples=[])

        analysis = await self._analyze(user_id, texts[: self.config.analysis_prompt_size])
        return await self._save(
            user_id,
            social_id,
            analysis,
            samples=texts[: self.config.style_profile_max_samples],
        )

    async def _analyze(self, user_id: str, texts: list[str]) -> ProfileAnalysis:
        """Ask the model for a style analysis; parse failures yield an empty analysis."""
        prompt = STYLE_ANALYSIS_PROMPT.format(
            posts="\n".join(f'{i}. "{text}"' for i, text in enumerate(texts, 1))
        )

        response = await self.llm.generate(
            prompt,
            model=self.config.gemini_model_style_profile,
            fallback_model=self.config.gemini_model_fallback,
            schema=STYLE_ANALYSIS_SCHEMA,
            temperature=0.2,
        )

        try:
            payload = parse_json_object(response)
        except ValueError as e:
            logger.warning(
                "Style analysis returned invalid JSON, keeping defaults",
                user_id=user_id,
                error=str(e),
                response=response[:200],
            )
            return ProfileAnalysis()

        return ProfileAnalysis.from_payload(payload)

    async def _save(
        self,
        user_id: str,
        social_id: int,
        analysis: ProfileAnalysis,
        samples: list[str],
    ) -> StyleProfile:
        fields = {
            **analysis.merged_fields(),
            "social_id": social_id,
            "sample_posts": samples,
            "analyzed_at": utcnow(),
        }
        profile = await self.repository.upsert_by_user_id(user_id, fields)
        logger.info(
            "Style profile saved",
            user_id=user_id,
            tone=profile.tone.value,
            samples=len(samples),
        )
        return profile
