"""
AccountContext model: optional brand overlay, one row per account.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from voicecraft.core.database import Base


class AccountContextRow(Base):
    """Brand voice and writing rules configured for an account."""

    __tablename__ = "account_contexts"

    account_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    brand_voice: Mapped[Optional[str]] = mapped_column(Text)
    bio: Mapped[Optional[str]] = mapped_column(Text)
    expertise: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    always_do: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    never_do: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    hashtags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    default_tone: Mapped[Optional[str]] = mapped_column(String(50))
    default_language: Mapped[Optional[str]] = mapped_column(String(10))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AccountContextRow(account_id={self.account_id})>"
