"""
UserStyleProfile model: stores the derived writing style of one user.

Written by the background refresh (full replace) and read on every
suggestion request. user_id is unique; the row is never deleted here.
"""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from voicecraft.core.database import Base


class UserStyleProfile(Base):
    """Writing style fingerprint for a user, derived from recent posts."""

    __tablename__ = "user_style_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    social_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tone: Mapped[str] = mapped_column(String(20), nullable=False, default="casual")
    avg_length: Mapped[int] = mapped_column(Integer, nullable=False, default=150)
    common_phrases: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    topics: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    emoji_usage: Mapped[str] = mapped_column(String(10), nullable=False, default="light")
    language_preference: Mapped[str] = mapped_column(String(10), nullable=False, default="en")
    sample_posts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    engagement_insights: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    analyzed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UserStyleProfile(user_id={self.user_id}, tone={self.tone})>"
