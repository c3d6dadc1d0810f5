"""Core infrastructure modules"""

from voicecraft.core.config import settings
from voicecraft.core.llm_clients import GeminiClient, gemini_client

__all__ = ["settings", "GeminiClient", "gemini_client"]
