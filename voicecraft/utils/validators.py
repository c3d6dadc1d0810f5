"""
Input validation utilities for assistant requests.
"""

import re
from typing import Literal, Optional

VoiceMode = Literal["auto", "brand", "personal"]
AccountType = Literal["personal", "business"]

PROMPT_INPUT_MAX_LENGTH = 2000


def sanitize_prompt_input(text: Optional[str], max_length: int = PROMPT_INPUT_MAX_LENGTH) -> str:
    """
    Sanitize user-supplied text before it is embedded in a prompt.

    - Removes angle brackets
    - Removes control characters except newlines and tabs
    - Normalizes whitespace
    - Truncates to max length
    """
    text = (text or "").replace("<", "").replace(">", "")

    # Remove control characters except newlines and tabs
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", text)

    # Normalize whitespace
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)

    return text.strip()[:max_length]


def resolve_voice_mode(account_type: AccountType, voice_mode: VoiceMode = "auto") -> Literal["brand", "personal"]:
    """Explicit modes win; auto means brand voice for business accounts only."""
    if voice_mode in ("brand", "personal"):
        return voice_mode
    return "brand" if account_type == "business" else "personal"
