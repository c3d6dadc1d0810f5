"""
Writing Assistant - wires profiles, brand context and the engines together
for upstream request handlers.
"""

from typing import Optional

import structlog

from voicecraft.core.config import Settings, settings as default_settings
from voicecraft.core.database import close_db, init_db
from voicecraft.core.exceptions import InvalidInputError
from voicecraft.core.llm_clients import TextGenerator, gemini_client
from voicecraft.core.observability import configure_logging, flush_observability, init_sentry
from voicecraft.schemas import (
    AccountContext,
    BrandValidationResult,
    GenerationMode,
    ProfileSummary,
    StyleProfile,
    SuggestionContext,
    SuggestionResult,
)
from voicecraft.services.account_context import AccountContextCache
from voicecraft.services.brand_validator import BrandCoherenceValidator
from voicecraft.services.generation import GenerationEngine
from voicecraft.services.profile_store import ProfileStore
from voicecraft.services.repositories import (
    AccountContextRepository,
    ProfileRepository,
    SqlAccountContextRepository,
    SqlProfileRepository,
)
from voicecraft.services.social_source import NeynarSocialSource, SocialSource
from voicecraft.services.translation import TranslationEngine
from voicecraft.utils.validators import AccountType, VoiceMode, resolve_voice_mode

logger = structlog.get_logger(__name__)


class WritingAssistant:
    """
    Entry point for suggestion, translation and brand validation requests.

    Every collaborator can be injected; the defaults talk to Postgres,
    Neynar and Gemini.
    """

    def __init__(
        self,
        profile_repository: Optional[ProfileRepository] = None,
        context_repository: Optional[AccountContextRepository] = None,
        social_source: Optional[SocialSource] = None,
        llm: Optional[TextGenerator] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        llm = llm or gemini_client

        self.profiles = ProfileStore(
            profile_repository or SqlProfileRepository(),
            social_source or NeynarSocialSource(),
            llm=llm,
            config=self.config,
        )
        self.contexts = AccountContextCache(
            context_repository or SqlAccountContextRepository(),
            ttl_seconds=self.config.account_context_ttl_seconds,
        )
        self.generation = GenerationEngine(llm=llm, config=self.config)
        self.translation = TranslationEngine(llm=llm, config=self.config)
        self.brand_validator = BrandCoherenceValidator(llm=llm, config=self.config)

    async def get_profile(self, user_id: str, social_id: int) -> StyleProfile:
        """Profile for the request; store failures degrade to the default profile."""
        try:
            return await self.profiles.get_or_create(user_id, social_id)
        except Exception as e:
            logger.error("Profile lookup failed, using default", user_id=user_id, error=str(e))
            return StyleProfile.default(user_id, social_id)

    async def resolve_account_context(
        self,
        account_id: Optional[str],
        account_type: AccountType = "personal",
        voice_mode: VoiceMode = "auto",
    ) -> Optional[AccountContext]:
        """Brand context for the account, or None in personal voice mode."""
        if not account_id:
            return None
        if resolve_voice_mode(account_type, voice_mode) != "brand":
            return None
        return await self.contexts.get(account_id)

    async def suggest(
        self,
        user_id: str,
        social_id: int,
        mode: GenerationMode,
        context: SuggestionContext,
        account_id: Optional[str] = None,
        account_type: AccountType = "personal",
        voice_mode: VoiceMode = "auto",
        max_chars: int = 320,
        is_pro_user: bool = False,
    ) -> SuggestionResult:
        """
        Generate suggestions in the user's voice.

        Raises:
            InvalidInputError: Unsupported language or missing draft
            GenerationError: Model output unusable
        """
        mode = GenerationMode(mode)
        profile = await self.get_profile(user_id, social_id)

        effective_voice = resolve_voice_mode(account_type, voice_mode) if account_id else "personal"
        account_context = await self.resolve_account_context(account_id, account_type, voice_mode)
        context = context.model_copy(update={"account_context": account_context})

        suggestions = await self.generation.generate_suggestions(
            mode,
            profile,
            context,
            max_chars=max_chars,
            is_pro_user=is_pro_user,
        )

        logger.info(
            "Suggestions generated",
            user_id=user_id,
            mode=mode.value,
            count=len(suggestions),
            voice_mode=effective_voice,
            has_brand_context=account_context is not None,
        )

        return SuggestionResult(
            mode=mode,
            suggestions=suggestions,
            profile=ProfileSummary.from_profile(profile),
            voice_mode=effective_voice,
        )

    async def translate(self, text: str, target_language: str) -> str:
        return await self.translation.translate(text, target_language)

    async def validate_brand(
        self,
        suggestion: str,
        user_id: str,
        social_id: int,
        account_id: Optional[str] = None,
        account_type: AccountType = "business",
        voice_mode: VoiceMode = "auto",
    ) -> BrandValidationResult:
        """
        Score text against the user's profile and, in brand voice mode, the
        account's brand context.

        Raises:
            InvalidInputError: Empty suggestion
        """
        if not suggestion or not suggestion.strip():
            raise InvalidInputError("Suggestion text is required")

        profile = await self.get_profile(user_id, social_id)
        account_context = await self.resolve_account_context(account_id, account_type, voice_mode)
        return await self.brand_validator.validate(suggestion.strip(), profile, account_context)

    async def refresh_profile(self, user_id: str, social_id: int) -> ProfileSummary:
        """Re-analyze the user's posts now. Errors propagate."""
        profile = await self.profiles.refresh_now(user_id, social_id)
        return ProfileSummary.from_profile(profile)

    async def startup(self, create_tables: bool = False) -> None:
        """Set up logging and error tracking; optionally create missing tables."""
        configure_logging()
        init_sentry()
        if create_tables:
            await init_db()
        logger.info("Writing assistant started", environment=self.config.environment)

    async def shutdown(self, dispose_engine: bool = False) -> None:
        """Let in-flight profile refreshes finish and flush traces."""
        await self.profiles.wait_for_pending()
        flush_observability()
        if dispose_engine:
            await close_db()
