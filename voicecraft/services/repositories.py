"""
Store interfaces for profiles and account contexts, plus their
SQLAlchemy implementations.
"""

import uuid
from typing import Any, Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from voicecraft.models import AccountContextRow, UserStyleProfile
from voicecraft.schemas import AccountContext, StyleProfile

logger = structlog.get_logger(__name__)

PROFILE_FIELDS = (
    "social_id",
    "tone",
    "avg_length",
    "common_phrases",
    "topics",
    "emoji_usage",
    "language_preference",
    "sample_posts",
    "engagement_insights",
    "analyzed_at",
)


class ProfileRepository(Protocol):
    """Persistence for style profiles, keyed by user id."""

    async def find_by_user_id(self, user_id: str) -> Optional[StyleProfile]:
        ...

    async def upsert_by_user_id(self, user_id: str, fields: dict[str, Any]) -> StyleProfile:
        ...


class AccountContextRepository(Protocol):
    """Read access to account brand contexts."""

    async def find_by_account_id(self, account_id: str) -> Optional[AccountContext]:
        ...


def _session_factory(session_factory: Optional[async_sessionmaker]) -> async_sessionmaker:
    if session_factory is not None:
        return session_factory
    from voicecraft.core.database import AsyncSessionLocal

    return AsyncSessionLocal


def _to_column_value(value: Any) -> Any:
    """Enums become their values, pydantic models become dicts."""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_column_value(v) for v in value]
    return getattr(value, "value", value)


def row_to_profile(row: UserStyleProfile) -> StyleProfile:
    return StyleProfile(
        id=row.id,
        user_id=row.user_id,
        social_id=row.social_id,
        tone=row.tone,
        avg_length=row.avg_length,
        common_phrases=row.common_phrases or [],
        topics=row.topics or [],
        emoji_usage=row.emoji_usage,
        language_preference=row.language_preference,
        sample_posts=row.sample_posts or [],
        engagement_insights=row.engagement_insights or [],
        analyzed_at=row.analyzed_at,
    )


class SqlProfileRepository:
    """Style profiles stored in the user_style_profiles table."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = _session_factory(session_factory)

    async def find_by_user_id(self, user_id: str) -> Optional[StyleProfile]:
        async with self._session_factory() as session:
            row = await self._get_row(session, user_id)
            return row_to_profile(row) if row else None

    async def upsert_by_user_id(self, user_id: str, fields: dict[str, Any]) -> StyleProfile:
        """Insert or fully replace the given fields of a user's profile."""
        values = {
            key: _to_column_value(value)
            for key, value in fields.items()
            if key in PROFILE_FIELDS
        }

        async with self._session_factory() as session:
            row = await self._get_row(session, user_id)
            if row is None:
                row = UserStyleProfile(id=str(uuid.uuid4()), user_id=user_id, **values)
                session.add(row)
            else:
                for key, value in values.items():
                    setattr(row, key, value)

            await session.commit()
            await session.refresh(row)

            logger.debug("Style profile upserted", user_id=user_id, fields=sorted(values))
            return row_to_profile(row)

    @staticmethod
    async def _get_row(session: AsyncSession, user_id: str) -> Optional[UserStyleProfile]:
        result = await session.execute(
            select(UserStyleProfile).where(UserStyleProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()


class SqlAccountContextRepository:
    """Account contexts stored in the account_contexts table."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = _session_factory(session_factory)

    async def find_by_account_id(self, account_id: str) -> Optional[AccountContext]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AccountContextRow).where(AccountContextRow.account_id == account_id)
            )
            row = result.scalar_one_or_none()

        if row is None:
            return None

        return AccountContext(
            brand_voice=row.brand_voice,
            bio=row.bio,
            expertise=row.expertise or [],
            always_do=row.always_do or [],
            never_do=row.never_do or [],
            hashtags=row.hashtags or [],
            default_tone=row.default_tone,
            default_language=row.default_language,
        )
