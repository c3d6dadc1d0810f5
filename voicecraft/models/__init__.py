"""Database models"""

from voicecraft.models.account_context import AccountContextRow
from voicecraft.models.user_style_profile import UserStyleProfile

__all__ = [
    "AccountContextRow",
    "UserStyleProfile",
]
